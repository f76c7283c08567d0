"""Monitoring case generation.

One case per detector hit per client, in score-table order, and within a
client always structuring -> corridors -> large domestic. Detail strings
restate the same evidence numbers the score reasons carry.
"""

from collections.abc import Mapping, Sequence

from .config import RiskEngineConfig, default_config
from .models import CaseRule, ClientDetections, MonitoringCase, ScoredClient


def build_client_cases(
    client_name: str,
    client_id: str,
    detections: ClientDetections,
    config: RiskEngineConfig = default_config,
) -> list[MonitoringCase]:
    cases: list[MonitoringCase] = []

    structuring = detections.structuring
    if structuring.hit:
        sc = config.structuring
        cases.append(
            MonitoringCase(
                rule=CaseRule.STRUCTURING,
                client=client_name,
                client_id=client_id,
                amount=structuring.total_amount,
                detail=(
                    f"{structuring.max_run} consecutive near-threshold cash deposits "
                    f"(${sc.amount_min:,.0f}–${sc.amount_max:,.0f}) no more than "
                    f"{sc.max_gap_days} days apart; {structuring.count} qualifying "
                    f"deposits in the last {config.lookback_months} months"
                ),
            )
        )

    corridors = detections.corridors
    if corridors.hit:
        cc = config.corridor
        cases.append(
            MonitoringCase(
                rule=CaseRule.HIGH_RISK_CORRIDOR,
                client=client_name,
                client_id=client_id,
                amount=corridors.total_amount,
                detail=(
                    f"{corridors.total} international transfers to "
                    f"{'/'.join(cc.countries)}, {corridors.big} of them "
                    f"≥ ${cc.big_amount:,.0f}"
                ),
            )
        )

    large_domestic = detections.large_domestic
    if large_domestic.hit:
        cases.append(
            MonitoringCase(
                rule=CaseRule.LARGE_DOMESTIC,
                client=client_name,
                client_id=client_id,
                amount=large_domestic.total_amount,
                detail=(
                    f"{large_domestic.count} domestic transfer(s) "
                    f"≥ ${config.large_domestic.threshold:,.0f}"
                ),
            )
        )

    return cases


def build_cases(
    scored_clients: Sequence[ScoredClient],
    detections_by_client: Mapping[str, ClientDetections],
    config: RiskEngineConfig = default_config,
) -> list[MonitoringCase]:
    """Emit monitoring cases for every client, in the order given.

    Clients without detector results (no transactions) produce no cases.
    """
    cases: list[MonitoringCase] = []
    for scored in scored_clients:
        detections = detections_by_client.get(scored.client_id)
        if detections is None:
            continue
        cases.extend(build_client_cases(scored.name, scored.client_id, detections, config))
    return cases
