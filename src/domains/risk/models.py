"""Pydantic models for the risk engine.

Records are exposed under their canonical tabular names (``ClientID``,
``CounterpartyCountry`` ...) through aliases, so ``model_dump(by_alias=True)``
round-trips to the column names the uploads and the evidence pack use.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class RiskBand(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _BAND_RANK[self]


_BAND_RANK = {RiskBand.LOW: 0, RiskBand.MEDIUM: 1, RiskBand.HIGH: 2}


class CaseRule(StrEnum):
    STRUCTURING = "STRUCTURING"
    HIGH_RISK_CORRIDOR = "HIGH_RISK_CORRIDOR"
    LARGE_DOMESTIC = "LARGE_DOMESTIC"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Normalized input records
# ---------------------------------------------------------------------------


class ClientRecord(_Record):
    client_id: str = Field(alias="ClientID")
    name: str = Field(alias="Name")
    country: str = Field(alias="Country")
    entity_type: str | None = Field(default=None, alias="EntityType")
    state: str | None = Field(default=None, alias="State")
    suburb: str | None = Field(default=None, alias="Suburb")
    postcode: str | None = Field(default=None, alias="Postcode")
    residency_status: str | None = Field(default=None, alias="ResidencyStatus")
    pep: str | None = Field(default=None, alias="PEP")
    kyc_status: str | None = Field(default=None, alias="KYCStatus")
    onboard_date: str | None = Field(default=None, alias="OnboardDate")
    last_kyc_review: str | None = Field(default=None, alias="LastKYCReview")
    delivery_channel: str | None = Field(default=None, alias="DeliveryChannel")
    services_used: str | None = Field(default=None, alias="ServicesUsed")
    industry: str | None = Field(default=None, alias="Industry")
    annual_turnover_aud: str | None = Field(default=None, alias="AnnualTurnoverAUD")
    source_of_funds: str | None = Field(default=None, alias="SourceOfFunds")
    sanctions_match: str | None = Field(default=None, alias="SanctionsMatch")
    risk_country_exposure: str | None = Field(default=None, alias="RiskCountryExposure")


class TransactionRecord(_Record):
    txn_id: str | None = Field(default=None, alias="TxnID")
    client_id: str | None = Field(default=None, alias="ClientID")
    date: str | None = Field(default=None, alias="Date")
    # NaN when the source value is not numeric
    amount: float = Field(default=float("nan"), alias="Amount")
    currency: str | None = Field(default=None, alias="Currency")
    type: str | None = Field(default=None, alias="Type")
    channel: str | None = Field(default=None, alias="Channel")
    location: str | None = Field(default=None, alias="Location")
    counterparty_name: str | None = Field(default=None, alias="CounterpartyName")
    counterparty_country: str | None = Field(default=None, alias="CounterpartyCountry")
    notes: str | None = Field(default=None, alias="Notes")

    def to_output(self) -> dict:
        row = self.model_dump(by_alias=True, exclude_none=True)
        if self.amount != self.amount:  # NaN
            row["Amount"] = None
        return row


# ---------------------------------------------------------------------------
# Detector results
# ---------------------------------------------------------------------------


class StructuringResult(_Record):
    hit: bool = False
    max_run: int = 0
    count: int = 0
    total_amount: float = 0.0


class CorridorResult(_Record):
    hit: bool = False
    total: int = 0
    big: int = 0
    total_amount: float = 0.0


class LargeDomesticResult(_Record):
    hit: bool = False
    count: int = 0
    total_amount: float = 0.0


class ClientDetections(_Record):
    """All detector outputs for one client, computed once and reused."""

    structuring: StructuringResult = Field(default_factory=StructuringResult)
    corridors: CorridorResult = Field(default_factory=CorridorResult)
    large_domestic: LargeDomesticResult = Field(default_factory=LargeDomesticResult)


# ---------------------------------------------------------------------------
# Scoring and cases
# ---------------------------------------------------------------------------


class ScoreResult(_Record):
    score: int = Field(ge=0)
    reasons: tuple[str, ...] = ()
    band: RiskBand


class ScoredClient(_Record):
    client: ClientRecord
    result: ScoreResult

    @property
    def client_id(self) -> str:
        return self.client.client_id

    @property
    def name(self) -> str:
        return self.client.name

    @property
    def score(self) -> int:
        return self.result.score

    def to_output(self) -> dict:
        """Score table row: ClientID, Name, Band, Score, Reasons, then profile fields."""
        row = {
            "ClientID": self.client.client_id,
            "Name": self.client.name,
            "Band": self.result.band.value,
            "Score": self.result.score,
            "Reasons": list(self.result.reasons),
        }
        for key, value in self.client.model_dump(by_alias=True, exclude_none=True).items():
            row.setdefault(key, value)
        return row


class MonitoringCase(_Record):
    rule: CaseRule
    client: str
    client_id: str
    amount: float | None = None
    detail: str
    narrative: str | None = None

    def to_output(self) -> dict:
        data = self.model_dump(mode="json")
        if data["narrative"] is None:
            del data["narrative"]
        return data


class BatchAssessment(_Record):
    results: list[ScoredClient] = Field(default_factory=list)
    cases: list[MonitoringCase] = Field(default_factory=list)
    transactions: list[TransactionRecord] = Field(default_factory=list)
    detections: dict[str, ClientDetections] = Field(default_factory=dict)
    orphaned_transactions: int = 0
    reference_time: datetime
