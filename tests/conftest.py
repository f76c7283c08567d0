"""Shared test fixtures for TrancheReady tests."""

from datetime import datetime

import pytest

REFERENCE_TIME = datetime(2025, 6, 15)


@pytest.fixture
def reference_time() -> datetime:
    return REFERENCE_TIME


@pytest.fixture
def sample_client_rows() -> list[dict]:
    """Client table with mixed header spellings, as exported by a practice system."""
    return [
        {
            "Client_ID": "C-100",
            "Name": "Harbour Imports Pty Ltd",
            "Country": "AU",
            "PEP": "N",
            "SanctionsMatch": "N",
            "LastKYCReview": "2025-01-10",
            "ServicesUsed": "remittance;trade finance",
            "DeliveryChannel": "Broker",
            "RiskCountryExposure": "HighRisk:RU, MedRisk:CN",
        },
        {
            "client_id": "C-200",
            "name": "Jane Citizen",
            "country": "au",
            "pep": "N",
            "lastkycreview": "2025-03-01",
            "deliverychannel": "Online",
        },
        {
            "ClientID": "C-300",
            "Name": "Minister Example",
            "PEP": "Yes",
            "LastKYCReview": "2024/11/20",
            "KYCStatus": "Enhanced",
        },
    ]


@pytest.fixture
def sample_transaction_rows() -> list[dict]:
    rows = [
        # C-100: four near-threshold cash deposits, 5 days apart
        {"TxnID": "T1", "ClientID": "C-100", "Date": "2025-05-01", "Amount": "9,700", "Type": "Cash Deposit"},
        {"TxnID": "T2", "ClientID": "C-100", "Date": "2025-05-06", "Amount": "9,650", "Type": "Cash Deposit"},
        {"TxnID": "T3", "ClientID": "C-100", "Date": "2025-05-11", "Amount": "9,900", "Type": "Cash Deposit"},
        {"TxnID": "T4", "ClientID": "C-100", "Date": "2025-05-16", "Amount": "9,800", "Type": "Cash Deposit"},
        # C-100: two international transfers to Russia, one large
        {
            "TxnID": "T5",
            "ClientID": "C-100",
            "Date": "2025-02-01",
            "Amount": "$5,000",
            "Type": "International Transfer",
            "CounterpartyCountry": "ru",
        },
        {
            "TxnID": "T6",
            "ClientID": "C-100",
            "Date": "2025-03-01",
            "Amount": "$25,000",
            "Type": "International Transfer",
            "CounterpartyCountry": "RU",
        },
        # C-200: ordinary activity
        {"TxnID": "T7", "ClientID": "C-200", "Date": "2025-04-01", "Amount": "120", "Type": "Card Purchase"},
        # C-300: a large domestic transfer
        {"TxnID": "T8", "ClientID": "C-300", "Date": "2025-01-20", "Amount": "150000", "Type": "Domestic Transfer"},
        # Orphan: no client id
        {"TxnID": "T9", "Date": "2025-01-20", "Amount": "50", "Type": "Cash Deposit"},
    ]
    return rows
