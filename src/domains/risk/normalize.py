"""Header normalization for uploaded client and transaction tables.

Uploads arrive with whatever column headers the exporting system used
(``client_id``, ``ClientId``, ``ID`` ...). Each table has a synonym table
keyed by the lower-cased header; matching headers are mapped onto the
canonical field names and everything else is dropped.
"""

import math
import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType

import structlog

from .config import RiskEngineConfig, default_config
from .exceptions import PreconditionError
from .models import ClientRecord, TransactionRecord

logger = structlog.get_logger()


CLIENT_SYNONYMS: Mapping[str, str] = MappingProxyType(
    {
        "clientid": "ClientID",
        "client_id": "ClientID",
        "id": "ClientID",
        "name": "Name",
        "client_name": "Name",
        "entitytype": "EntityType",
        "entity_type": "EntityType",
        "country": "Country",
        "state": "State",
        "suburb": "Suburb",
        "postcode": "Postcode",
        "residencystatus": "ResidencyStatus",
        "residency_status": "ResidencyStatus",
        "pep": "PEP",
        "kycstatus": "KYCStatus",
        "kyc_status": "KYCStatus",
        "onboarddate": "OnboardDate",
        "onboard_date": "OnboardDate",
        "lastkycreview": "LastKYCReview",
        "last_kyc_review": "LastKYCReview",
        "deliverychannel": "DeliveryChannel",
        "delivery_channel": "DeliveryChannel",
        "servicesused": "ServicesUsed",
        "services_used": "ServicesUsed",
        "industry": "Industry",
        "annualturnoveraud": "AnnualTurnoverAUD",
        "sourceoffunds": "SourceOfFunds",
        "sanctionsmatch": "SanctionsMatch",
        "sanctions_match": "SanctionsMatch",
        "riskcountryexposure": "RiskCountryExposure",
        "risk_country_exposure": "RiskCountryExposure",
    }
)

TRANSACTION_SYNONYMS: Mapping[str, str] = MappingProxyType(
    {
        "txnid": "TxnID",
        "txn_id": "TxnID",
        "id": "TxnID",
        "clientid": "ClientID",
        "client_id": "ClientID",
        "date": "Date",
        "txn_date": "Date",
        "amount": "Amount",
        "currency": "Currency",
        "type": "Type",
        "channel": "Channel",
        "location": "Location",
        "counterpartyname": "CounterpartyName",
        "counterpartycountry": "CounterpartyCountry",
        "counterparty_country": "CounterpartyCountry",
        "notes": "Notes",
    }
)

_AMOUNT_NOISE = re.compile(r"[,\s$€£¥]")
_CURRENCY_CODE = re.compile(r"^[A-Za-z]{3}|[A-Za-z]{3}$")


def _clean(value: object) -> object:
    return value.strip() if isinstance(value, str) else value


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_amount(value: object) -> float:
    """Parse a currency-formatted amount; NaN when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        try:
            amount = float(value)
        except OverflowError:
            return math.nan
    else:
        text = _AMOUNT_NOISE.sub("", str(value))
        text = _CURRENCY_CODE.sub("", text)
        # float() also accepts digit separators like "1_000"
        if "_" in text:
            return math.nan
        try:
            amount = float(text)
        except ValueError:
            return math.nan
    return amount if math.isfinite(amount) else math.nan


def normalize_row(row: Mapping[str, object], synonyms: Mapping[str, str]) -> dict[str, object]:
    """Map a raw row onto canonical field names.

    Header matching is case-insensitive and whitespace-trimmed. String
    values are trimmed. When two headers map to the same field the first
    one wins.
    """
    out: dict[str, object] = {}
    for header, value in row.items():
        canonical = synonyms.get(str(header).strip().lower())
        if canonical is None or canonical in out:
            continue
        out[canonical] = _clean(value)
    return out


def normalize_client(
    row: Mapping[str, object],
    position: int,
    config: RiskEngineConfig = default_config,
) -> ClientRecord:
    """Normalize one client row; ``position`` is 1-based and seeds the fallback id."""
    fields = {key: _as_text(value) for key, value in normalize_row(row, CLIENT_SYNONYMS).items()}

    client_id = fields.get("ClientID") or f"C{position:04d}"
    fields["ClientID"] = client_id
    fields["Name"] = fields.get("Name") or client_id
    fields["Country"] = (fields.get("Country") or config.home_country).upper()

    return ClientRecord.model_validate(fields)


def normalize_transaction(row: Mapping[str, object]) -> TransactionRecord:
    fields = normalize_row(row, TRANSACTION_SYNONYMS)
    amount = to_amount(fields.pop("Amount", None))
    fields = {key: _as_text(value) for key, value in fields.items()}
    fields["Amount"] = amount
    return TransactionRecord.model_validate(fields)


def _require_rows(rows: object, label: str) -> Sequence[Mapping[str, object]]:
    if rows is None:
        raise PreconditionError(f"{label} rows are required")
    if isinstance(rows, (str, bytes, Mapping)) or not isinstance(rows, Sequence):
        raise PreconditionError(f"{label} rows must be a sequence of mappings")
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise PreconditionError(f"{label} row {index + 1} is not a mapping")
    return rows


def normalize_clients(
    rows: Sequence[Mapping[str, object]],
    config: RiskEngineConfig = default_config,
) -> list[ClientRecord]:
    """Normalize a client table, keeping ClientID unique within the batch."""
    rows = _require_rows(rows, "Client")

    clients: list[ClientRecord] = []
    seen: set[str] = set()
    for position, row in enumerate(rows, start=1):
        client = normalize_client(row, position, config)
        if client.client_id in seen:
            unique_id = f"{client.client_id}-{position}"
            logger.warning(
                "duplicate_client_id",
                client_id=client.client_id,
                position=position,
                replacement=unique_id,
            )
            client = client.model_copy(update={"client_id": unique_id})
        seen.add(client.client_id)
        clients.append(client)
    return clients


def normalize_transactions(rows: Sequence[Mapping[str, object]]) -> list[TransactionRecord]:
    rows = _require_rows(rows, "Transaction")
    return [normalize_transaction(row) for row in rows]
