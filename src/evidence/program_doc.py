"""AML/CTF program document included in every evidence pack."""

from datetime import date

from jinja2 import Environment, select_autoescape

from src.domains.risk.config import RiskEngineConfig, default_config

_env = Environment(autoescape=select_autoescape(default_for_string=True))

_TEMPLATE = _env.from_string(
    """<html><head><meta charset="utf-8"/>
<title>AML/CTF Program — {{ organisation }}</title>
<style>
body{font-family:Segoe UI,Arial,sans-serif;max-width:860px;margin:24px auto;padding:0 12px;color:#222}
h1{margin:0 0 8px} h2{margin-top:24px} code{background:#f2f2f2;padding:2px 4px}
.box{border:1px solid #e0e0e0;padding:12px;margin:12px 0;border-radius:6px}
</style></head><body>
<h1>AML/CTF Program — {{ organisation }}</h1>
<div class="box">Version: {{ version }} • Sector: {{ sector }} • Date: {{ generated_on }}</div>
<h2>1. Governance</h2>
<p>Compliance Officer: {{ compliance_officer }} • Reports to {{ board }}.</p>
<h2>2. ML/TF Risk Assessment</h2>
<p>Risk factors: customer type, geography, products/services, channels, delivery methods.
Customers are banded High (score ≥ {{ high_band_min }}), Medium (≥ {{ medium_band_min }}) or Low.</p>
<h2>3. CDD</h2>
<p>Standard CDD for Low; EDD for High risk/PEPs. Verify identity before service delivery.
KYC reviews older than {{ kyc_stale_months }} months are treated as stale.</p>
<h2>4. Ongoing Monitoring</h2>
<p>Transactions from the last {{ lookback_months }} months are monitored against these rules:</p>
<ul>
{% for rule in rules %}  <li>{{ rule }}</li>
{% endfor %}</ul>
<h2>5. Reporting</h2>
<p>SMRs lodged promptly; internal escalation to the Compliance Officer.</p>
<h2>6. Record Keeping</h2>
<p>Retain CDD and transaction records ≥ 7 years. Maintain evidence packs with SHA-256 manifests.</p>
<h2>7. Training &amp; Review</h2>
<p>Annual AML training; independent review at least every two years.</p>
</body></html>
"""
)


def monitoring_rules(config: RiskEngineConfig = default_config) -> list[str]:
    sc = config.structuring
    cc = config.corridor
    return [
        (
            f"Structuring: {sc.min_run_length}+ cash deposits of "
            f"${sc.amount_min:,.0f}–${sc.amount_max:,.0f} no more than "
            f"{sc.max_gap_days} days apart"
        ),
        (
            f"High-risk corridors: {cc.min_count}+ international transfers to "
            f"{'/'.join(cc.countries)} with at least one ≥ ${cc.big_amount:,.0f}"
        ),
        f"Large domestic transfers ≥ ${config.large_domestic.threshold:,.0f}",
    ]


def render_program_html(
    organisation: str,
    sector: str | None = None,
    generated_on: date | None = None,
    config: RiskEngineConfig = default_config,
    compliance_officer: str = "(assign)",
    board: str = "(board/owner)",
) -> str:
    return _TEMPLATE.render(
        organisation=organisation or "Your Organisation",
        sector=(sector or "generic").replace("_", " "),
        generated_on=(generated_on or date.today()).isoformat(),
        version="1.0",
        compliance_officer=compliance_officer,
        board=board,
        high_band_min=config.scoring.high_band_min,
        medium_band_min=config.scoring.medium_band_min,
        kyc_stale_months=config.scoring.kyc_stale_months,
        lookback_months=config.lookback_months,
        rules=monitoring_rules(config),
    )
