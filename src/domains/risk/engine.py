"""Batch risk assessment: normalize, group, detect, score, build cases."""

from collections.abc import Mapping, Sequence
from datetime import datetime

import structlog

from .cases import build_cases
from .config import RiskEngineConfig, default_config
from .detectors import detect_all
from .grouping import count_orphans, group_by_client
from .models import BatchAssessment, ClientDetections, RiskBand, ScoredClient
from .normalize import normalize_clients, normalize_transactions
from .scoring import score_client
from .temporal import to_reference_time

logger = structlog.get_logger()


class RiskEngine:
    """Runs the full scoring pipeline over one batch of uploaded rows.

    Each client is evaluated from its own record and transactions only, so
    the per-client work holds no shared state.
    """

    def __init__(self, config: RiskEngineConfig | None = None) -> None:
        self.config = config or default_config

    def assess(
        self,
        client_rows: Sequence[Mapping[str, object]],
        transaction_rows: Sequence[Mapping[str, object]],
        now: datetime | str | None = None,
    ) -> BatchAssessment:
        """Score every client and build monitoring cases.

        ``now`` is the reference instant for all lookback windows; pass it
        explicitly for reproducible results. Results are ordered by score,
        highest first; ties keep upload order.
        """
        reference_time = to_reference_time(now)

        clients = normalize_clients(client_rows, self.config)
        transactions = normalize_transactions(transaction_rows)
        by_client = group_by_client(transactions)
        orphaned = count_orphans(transactions)

        detections: dict[str, ClientDetections] = {}
        scored: list[ScoredClient] = []
        for client in clients:
            client_txns = by_client.get(client.client_id, [])
            client_detections = detect_all(client_txns, reference_time, self.config)
            detections[client.client_id] = client_detections
            result = score_client(
                client,
                client_txns,
                reference_time,
                self.config,
                detections=client_detections,
            )
            scored.append(ScoredClient(client=client, result=result))

        scored.sort(key=lambda s: s.score, reverse=True)
        cases = build_cases(scored, detections, self.config)

        unmatched = set(by_client) - set(detections)
        if unmatched:
            logger.warning(
                "transactions_without_client",
                client_ids=sorted(unmatched),
                transaction_count=sum(len(by_client[cid]) for cid in unmatched),
            )

        logger.info(
            "batch_assessed",
            client_count=len(scored),
            transaction_count=len(transactions),
            orphaned_transactions=orphaned,
            case_count=len(cases),
            high_risk_count=sum(1 for s in scored if s.result.band == RiskBand.HIGH),
            reference_time=reference_time.isoformat(),
        )

        return BatchAssessment(
            results=scored,
            cases=cases,
            transactions=transactions,
            detections=detections,
            orphaned_transactions=orphaned,
            reference_time=reference_time,
        )
