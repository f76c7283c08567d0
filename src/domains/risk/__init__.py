"""Client risk scoring and transaction monitoring domain."""

from .cases import build_cases, build_client_cases
from .config import RiskEngineConfig, default_config
from .detectors import detect_all, detect_corridors, detect_large_domestic, detect_structuring
from .engine import RiskEngine
from .exceptions import PreconditionError
from .grouping import group_by_client
from .models import (
    BatchAssessment,
    CaseRule,
    ClientDetections,
    ClientRecord,
    MonitoringCase,
    RiskBand,
    ScoredClient,
    ScoreResult,
    TransactionRecord,
)
from .normalize import normalize_clients, normalize_row, normalize_transactions
from .scoring import band_for_score, score_client
from .temporal import months_ago, parse_date

__all__ = [
    "BatchAssessment",
    "CaseRule",
    "ClientDetections",
    "ClientRecord",
    "MonitoringCase",
    "PreconditionError",
    "RiskBand",
    "RiskEngine",
    "RiskEngineConfig",
    "ScoreResult",
    "ScoredClient",
    "TransactionRecord",
    "band_for_score",
    "build_cases",
    "build_client_cases",
    "default_config",
    "detect_all",
    "detect_corridors",
    "detect_large_domestic",
    "detect_structuring",
    "group_by_client",
    "months_ago",
    "normalize_clients",
    "normalize_row",
    "normalize_transactions",
    "parse_date",
    "score_client",
]
