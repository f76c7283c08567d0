"""Deterministic, explainable client risk scoring.

The score is a plain sum of points. Rules are evaluated in a fixed order
and every rule that fires appends one reason, so the reason list reads in
the same order for every client:

   1. PEP flagged                      +30
   2. Sanctions match                  +40
   3. KYC review stale (>24 months)    +6
   4. Non-resident                     +5
   5. Uses remittance                  +10
   6. Property settlements             +5
   7. Higher-risk delivery channel     +4
   8. High-risk country exposure       +12 (once, however many tags)
   9. Medium-risk country exposure     +6  (once, however many tags)
  10. Structuring pattern              +15
  11. High-risk corridors              +12
  12. Large domestic transfer(s)       +8
  13. EDD in place                     +5

The band is derived once from the final score: >= 30 High, >= 15 Medium,
otherwise Low. Missing or malformed fields simply fail their check.
"""

import re
from collections.abc import Sequence
from datetime import datetime

import structlog

from .config import RiskEngineConfig, default_config
from .detectors import detect_all
from .models import ClientDetections, ClientRecord, RiskBand, ScoreResult, TransactionRecord
from .temporal import months_ago, parse_date

logger = structlog.get_logger()


def _upper(value: str | None) -> str:
    return (value or "").strip().upper()


def _lower(value: str | None) -> str:
    return (value or "").strip().lower()


def is_flag_set(value: str | None, config: RiskEngineConfig = default_config) -> bool:
    """Yes/no columns: Y, YES and TRUE (any case) are set; anything else is not."""
    return _upper(value) in config.scoring.truthy_flags


def band_for_score(score: int, config: RiskEngineConfig = default_config) -> RiskBand:
    sc = config.scoring
    if score >= sc.high_band_min:
        return RiskBand.HIGH
    if score >= sc.medium_band_min:
        return RiskBand.MEDIUM
    return RiskBand.LOW


def count_country_exposure(
    client: ClientRecord,
    config: RiskEngineConfig = default_config,
) -> tuple[int, int]:
    """Count (high, medium) risk country tags across exposure and country.

    Tags look like ``HighRisk:RU, MedRisk:CN`` or plain ``RU``; the prefix
    is informational only, the tier comes from the country tables.
    """
    cr = config.countries
    prefix = re.compile(
        rf"^(?:{re.escape(cr.high_prefix)}|{re.escape(cr.medium_prefix)})",
        re.IGNORECASE,
    )

    combined = f"{client.risk_country_exposure or ''},{client.country or ''}"
    high = medium = 0
    for tag in combined.split(","):
        tag = tag.strip()
        if not tag:
            continue
        code = prefix.sub("", tag).strip().upper()
        if code in cr.high_risk:
            high += 1
        if code in cr.medium_risk:
            medium += 1
    return high, medium


def is_kyc_stale(
    client: ClientRecord,
    now: datetime,
    config: RiskEngineConfig = default_config,
) -> bool:
    """Last KYC review (or onboarding date) older than the staleness window.

    With no parseable date at all the client is stale unless
    ``penalize_missing_kyc`` is switched off.
    """
    sc = config.scoring
    last = parse_date(client.last_kyc_review or client.onboard_date)
    if last is None:
        return sc.penalize_missing_kyc
    return months_ago(last, now) > sc.kyc_stale_months


def score_client(
    client: ClientRecord,
    transactions: Sequence[TransactionRecord],
    now: datetime,
    config: RiskEngineConfig = default_config,
    detections: ClientDetections | None = None,
) -> ScoreResult:
    """Score one client from its profile and its transactions.

    ``detections`` may be passed in when the detectors already ran for this
    client; otherwise they are computed here.
    """
    sc = config.scoring
    if detections is None:
        detections = detect_all(transactions, now, config)

    score = 0
    reasons: list[str] = []

    def add(points: int, reason: str) -> None:
        nonlocal score
        score += points
        reasons.append(f"{reason} (+{points})")

    # Profile
    if is_flag_set(client.pep, config):
        add(sc.pep_points, "PEP flagged")
    if is_flag_set(client.sanctions_match, config):
        add(sc.sanctions_points, "Sanctions match")
    if is_kyc_stale(client, now, config):
        add(sc.kyc_stale_points, f"KYC review stale (>{sc.kyc_stale_months}mo)")
    if _upper(client.residency_status) == "NON-RESIDENT":
        add(sc.non_resident_points, "Non-resident")

    services = _lower(client.services_used)
    if "remittance" in services:
        add(sc.remittance_points, "Uses remittance")
    if "property" in services:
        add(sc.property_points, "Property settlements")

    channel = _lower(client.delivery_channel)
    if any(marker in channel for marker in sc.high_risk_channels):
        add(sc.channel_points, "Higher-risk delivery channel")

    high_exposure, medium_exposure = count_country_exposure(client, config)
    if high_exposure > 0:
        add(sc.high_country_points, f"Exposure to high-risk countries ({high_exposure})")
    if medium_exposure > 0:
        add(sc.medium_country_points, f"Exposure to medium-risk countries ({medium_exposure})")

    # Transactions (lookback window)
    structuring = detections.structuring
    if structuring.hit:
        add(
            sc.structuring_points,
            f"Structuring pattern: {structuring.max_run}+ near-threshold cash deposits",
        )
    corridors = detections.corridors
    if corridors.hit:
        add(
            sc.corridor_points,
            f"High-risk corridors: {corridors.total} intl to {'/'.join(config.corridor.countries)}",
        )
    if detections.large_domestic.hit:
        add(
            sc.large_domestic_points,
            f"Large domestic transfer(s) ≥ {config.large_domestic.threshold:,.0f}",
        )

    # EDD already in place
    if "ENHANCED" in _upper(client.kyc_status):
        add(sc.edd_points, "EDD in place")

    result = ScoreResult(score=score, reasons=tuple(reasons), band=band_for_score(score, config))

    logger.debug(
        "client_scored",
        client_id=client.client_id,
        score=result.score,
        band=result.band.value,
        reason_count=len(result.reasons),
    )
    return result
