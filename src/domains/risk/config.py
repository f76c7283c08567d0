"""Risk engine configuration.

Every threshold, window and country table used by the detectors and the
scorer lives here. Instances are frozen: build one at startup (or use
``default_config``) and pass it by reference into the engine.

Defaults:
- Structuring: cash deposits in [$9,600, $10,000) just below the $10,000
  cash reporting trigger, runs with gaps of at most 7 days, floor of 4.
- Corridors: international transfers to RU/CN/HK/AE/IN/IR, at least 2 in
  the window and at least one of $20,000 or more.
- Large domestic transfers: $100,000 or more.
- Lookback window: 18 calendar months. KYC staleness: 24 calendar months.
- Bands: score >= 30 High, >= 15 Medium, otherwise Low.
"""

import os
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class StructuringConfig:
    """Near-threshold cash deposit runs."""

    type_marker: str = "cash deposit"
    amount_min: float = 9_600.0  # inclusive
    amount_max: float = 10_000.0  # exclusive
    max_gap_days: int = 7
    min_run_length: int = 4
    min_count: int = 4


@dataclass(frozen=True)
class CorridorConfig:
    """International transfers through high-risk corridors."""

    type_marker: str = "international"
    # Order is kept for the reason text.
    countries: tuple[str, ...] = ("RU", "CN", "HK", "AE", "IN", "IR")
    big_amount: float = 20_000.0
    min_count: int = 2
    min_big_count: int = 1


@dataclass(frozen=True)
class LargeDomesticConfig:
    type_marker: str = "domestic"
    threshold: float = 100_000.0
    min_count: int = 1


@dataclass(frozen=True)
class CountryRiskConfig:
    """Country tiers used for profile exposure tagging."""

    high_risk: frozenset[str] = frozenset({"RU", "IR"})
    medium_risk: frozenset[str] = frozenset({"CN", "HK", "AE", "IN"})
    high_prefix: str = "HighRisk:"
    medium_prefix: str = "MedRisk:"


@dataclass(frozen=True)
class ScoringConfig:
    """Points awarded per rule and band cutoffs."""

    pep_points: int = 30
    sanctions_points: int = 40
    kyc_stale_points: int = 6
    kyc_stale_months: int = 24
    # A client with no parseable review or onboarding date counts as stale.
    penalize_missing_kyc: bool = True
    non_resident_points: int = 5
    remittance_points: int = 10
    property_points: int = 5
    channel_points: int = 4
    high_risk_channels: tuple[str, ...] = ("mixed", "broker", "in-branch")
    high_country_points: int = 12
    medium_country_points: int = 6
    structuring_points: int = 15
    corridor_points: int = 12
    large_domestic_points: int = 8
    edd_points: int = 5

    high_band_min: int = 30
    medium_band_min: int = 15

    truthy_flags: frozenset[str] = frozenset({"Y", "YES", "TRUE"})


@dataclass(frozen=True)
class RiskEngineConfig:
    """Top-level risk engine configuration."""

    lookback_months: int = 18
    home_country: str = "AU"
    structuring: StructuringConfig = field(default_factory=StructuringConfig)
    corridor: CorridorConfig = field(default_factory=CorridorConfig)
    large_domestic: LargeDomesticConfig = field(default_factory=LargeDomesticConfig)
    countries: CountryRiskConfig = field(default_factory=CountryRiskConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    @classmethod
    def from_env(cls) -> "RiskEngineConfig":
        """Load config with env var overrides (RISK_ prefix)."""
        config = cls()

        if v := os.getenv("RISK_LOOKBACK_MONTHS"):
            config = replace(config, lookback_months=int(v))
        if v := os.getenv("RISK_HOME_COUNTRY"):
            config = replace(config, home_country=v.strip().upper())

        # Structuring overrides
        structuring = config.structuring
        if v := os.getenv("RISK_STRUCTURING_MIN"):
            structuring = replace(structuring, amount_min=float(v))
        if v := os.getenv("RISK_STRUCTURING_MAX"):
            structuring = replace(structuring, amount_max=float(v))
        if v := os.getenv("RISK_STRUCTURING_GAP_DAYS"):
            structuring = replace(structuring, max_gap_days=int(v))
        if v := os.getenv("RISK_STRUCTURING_MIN_RUN"):
            structuring = replace(structuring, min_run_length=int(v), min_count=int(v))

        # Corridor overrides
        corridor = config.corridor
        if v := os.getenv("RISK_CORRIDOR_BIG_AMOUNT"):
            corridor = replace(corridor, big_amount=float(v))
        if v := os.getenv("RISK_CORRIDOR_MIN_COUNT"):
            corridor = replace(corridor, min_count=int(v))

        large_domestic = config.large_domestic
        if v := os.getenv("RISK_LARGE_DOMESTIC_THRESHOLD"):
            large_domestic = replace(large_domestic, threshold=float(v))

        # Scoring overrides
        scoring = config.scoring
        if v := os.getenv("RISK_KYC_STALE_MONTHS"):
            scoring = replace(scoring, kyc_stale_months=int(v))
        if v := os.getenv("RISK_PENALIZE_MISSING_KYC"):
            scoring = replace(scoring, penalize_missing_kyc=v.lower() in ("true", "1", "yes"))
        if v := os.getenv("RISK_HIGH_BAND_MIN"):
            scoring = replace(scoring, high_band_min=int(v))
        if v := os.getenv("RISK_MEDIUM_BAND_MIN"):
            scoring = replace(scoring, medium_band_min=int(v))

        return replace(
            config,
            structuring=structuring,
            corridor=corridor,
            large_domestic=large_domestic,
            scoring=scoring,
        )


# Module-level default instance
default_config = RiskEngineConfig()
