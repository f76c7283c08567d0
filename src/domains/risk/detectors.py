"""Transaction pattern detectors.

Three independent detectors run over one client's transactions:

  1. Structuring:        runs of near-threshold cash deposits
  2. High-risk corridor: international transfers to high-risk countries
  3. Large domestic:     domestic transfers at or above $100,000

Every detector only looks at transactions with a valid date inside the
lookback window (calendar months, see ``temporal.months_ago``). The
``Type`` column is free text, so categories are matched by case-insensitive
substring ("Cash Deposit - Branch" is a cash deposit).

Amounts that failed to parse are NaN and compare false against every
threshold, so they never qualify.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta

import structlog

from .config import RiskEngineConfig, default_config
from .models import (
    ClientDetections,
    CorridorResult,
    LargeDomesticResult,
    StructuringResult,
    TransactionRecord,
)
from .temporal import months_ago, parse_date

logger = structlog.get_logger()


def _type_contains(tx: TransactionRecord, marker: str) -> bool:
    return marker in (tx.type or "").lower()


def _in_window(
    transactions: Sequence[TransactionRecord],
    now: datetime,
    config: RiskEngineConfig,
) -> list[tuple[datetime, TransactionRecord]]:
    """Pair each in-window transaction with its parsed date."""
    dated: list[tuple[datetime, TransactionRecord]] = []
    for tx in transactions:
        when = parse_date(tx.date)
        if when is None:
            continue
        if months_ago(when, now) <= config.lookback_months:
            dated.append((when, tx))
    return dated


# ---------------------------------------------------------------------------
# 1. Structuring
# ---------------------------------------------------------------------------


def _runs(dates: list[datetime], max_gap: timedelta) -> list[int]:
    """Lengths of maximal runs where each consecutive gap is <= max_gap.

    The gap is measured from the previous transaction, not the run start.
    """
    if not dates:
        return []
    lengths = [1]
    for prev, cur in zip(dates, dates[1:]):
        if cur - prev <= max_gap:
            lengths[-1] += 1
        else:
            lengths.append(1)
    return lengths


def detect_structuring(
    transactions: Sequence[TransactionRecord],
    now: datetime,
    config: RiskEngineConfig = default_config,
) -> StructuringResult:
    """Detect runs of cash deposits just below the reporting threshold.

    Qualifying deposits are in ``[amount_min, amount_max)``. A hit needs a
    run of at least ``min_run_length`` deposits with gaps of at most
    ``max_gap_days`` and at least ``min_count`` qualifying deposits overall.
    """
    sc = config.structuring

    qualifying = sorted(
        (
            (when, tx)
            for when, tx in _in_window(transactions, now, config)
            if _type_contains(tx, sc.type_marker)
            and sc.amount_min <= tx.amount < sc.amount_max
        ),
        key=lambda pair: pair[0],
    )

    count = len(qualifying)
    if count == 0:
        return StructuringResult()

    run_lengths = _runs([when for when, _ in qualifying], timedelta(days=sc.max_gap_days))
    max_run = max(run_lengths)
    total_amount = sum(tx.amount for _, tx in qualifying)
    hit = max_run >= sc.min_run_length and count >= sc.min_count

    if hit:
        logger.info(
            "structuring_detected",
            client_id=qualifying[0][1].client_id,
            max_run=max_run,
            count=count,
            total_amount=total_amount,
        )

    return StructuringResult(hit=hit, max_run=max_run, count=count, total_amount=total_amount)


# ---------------------------------------------------------------------------
# 2. High-risk corridors
# ---------------------------------------------------------------------------


def detect_corridors(
    transactions: Sequence[TransactionRecord],
    now: datetime,
    config: RiskEngineConfig = default_config,
) -> CorridorResult:
    """Detect repeated international transfers through high-risk corridors.

    A hit needs at least ``min_count`` such transfers in the window, of
    which at least ``min_big_count`` are for ``big_amount`` or more.
    """
    cc = config.corridor
    corridor_countries = frozenset(cc.countries)

    risky = [
        tx
        for _, tx in _in_window(transactions, now, config)
        if _type_contains(tx, cc.type_marker)
        and (tx.counterparty_country or "").strip().upper() in corridor_countries
    ]

    total = len(risky)
    big = sum(1 for tx in risky if tx.amount >= cc.big_amount)
    total_amount = sum(tx.amount for tx in risky if tx.amount == tx.amount)
    hit = total >= cc.min_count and big >= cc.min_big_count

    if hit:
        logger.info(
            "high_risk_corridor_detected",
            client_id=risky[0].client_id,
            total=total,
            big=big,
            total_amount=total_amount,
        )

    return CorridorResult(hit=hit, total=total, big=big, total_amount=total_amount)


# ---------------------------------------------------------------------------
# 3. Large domestic transfers
# ---------------------------------------------------------------------------


def detect_large_domestic(
    transactions: Sequence[TransactionRecord],
    now: datetime,
    config: RiskEngineConfig = default_config,
) -> LargeDomesticResult:
    lc = config.large_domestic

    large = [
        tx
        for _, tx in _in_window(transactions, now, config)
        if _type_contains(tx, lc.type_marker) and tx.amount >= lc.threshold
    ]

    count = len(large)
    total_amount = sum(tx.amount for tx in large)
    hit = count >= lc.min_count

    if hit:
        logger.info(
            "large_domestic_detected",
            client_id=large[0].client_id,
            count=count,
            total_amount=total_amount,
        )

    return LargeDomesticResult(hit=hit, count=count, total_amount=total_amount)


def detect_all(
    transactions: Sequence[TransactionRecord],
    now: datetime,
    config: RiskEngineConfig = default_config,
) -> ClientDetections:
    """Run all three detectors for one client."""
    return ClientDetections(
        structuring=detect_structuring(transactions, now, config),
        corridors=detect_corridors(transactions, now, config),
        large_domestic=detect_large_domestic(transactions, now, config),
    )
