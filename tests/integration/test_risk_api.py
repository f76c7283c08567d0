"""Integration tests for the scoring and evidence pack endpoints."""

import io
import zipfile

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.api.routes.risk import get_narrative_writer, get_pack_writer
from src.config import Settings, settings
from src.evidence.narrative import NarrativeWriter
from src.evidence.pack import EvidencePackWriter
from src.main import app

pytestmark = pytest.mark.integration

CLIENTS_CSV = (
    "Client_ID,Name,Country,PEP,LastKYCReview,ServicesUsed,DeliveryChannel,RiskCountryExposure,KYCStatus\n"
    'C-100,Harbour Imports Pty Ltd,AU,N,2025-01-10,remittance,Broker,"HighRisk:RU, MedRisk:CN",\n'
    "C-200,Jane Citizen,au,N,2025-03-01,,Online,,\n"
    "C-300,Minister Example,,Yes,2024/11/20,,,,Enhanced\n"
)

TRANSACTIONS_CSV = (
    "TxnID,ClientID,Date,Amount,Type,CounterpartyCountry\n"
    'T1,C-100,2025-05-01,"9,700",Cash Deposit,\n'
    'T2,C-100,2025-05-06,"9,650",Cash Deposit,\n'
    'T3,C-100,2025-05-11,"9,900",Cash Deposit,\n'
    'T4,C-100,2025-05-16,"9,800",Cash Deposit,\n'
    'T5,C-100,2025-02-01,"$5,000",International Transfer,ru\n'
    'T6,C-100,2025-03-01,"$25,000",International Transfer,RU\n'
    "T7,C-200,2025-04-01,120,Card Purchase,\n"
    "T8,C-300,2025-01-20,150000,Domestic Transfer,\n"
    "T9,,2025-01-20,50,Cash Deposit,\n"
)


def _files(clients: str | None = CLIENTS_CSV, transactions: str | None = TRANSACTIONS_CSV) -> dict:
    files = {}
    if clients is not None:
        files["clients"] = ("clients.csv", clients.encode(), "text/csv")
    if transactions is not None:
        files["transactions"] = ("transactions.csv", transactions.encode(), "text/csv")
    return files


@pytest.fixture
def pack_writer(tmp_path):
    writer = EvidencePackWriter(tmp_path / "runs")
    app.dependency_overrides[get_pack_writer] = lambda: writer
    app.dependency_overrides[get_narrative_writer] = lambda: NarrativeWriter(
        Settings(_env_file=None, openai_api_key=None)
    )
    yield writer
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(pack_writer):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestUpload:
    @pytest.mark.asyncio
    async def test_scores_uploaded_clients(self, client):
        response = await client.post("/api/upload", files=_files(), data={"as_of": "2025-06-15"})
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["count"] == 3
        assert [(r["ClientID"], r["Score"], r["Band"]) for r in data["results"]] == [
            ("C-100", 59, "High"),
            ("C-300", 43, "High"),
            ("C-200", 0, "Low"),
        ]
        assert data["results"][1]["Reasons"] == [
            "PEP flagged (+30)",
            "Large domestic transfer(s) ≥ 100,000 (+8)",
            "EDD in place (+5)",
        ]

    @pytest.mark.asyncio
    async def test_missing_file_is_bad_request(self, client):
        response = await client.post("/api/upload", files=_files(transactions=None))
        assert response.status_code == 400
        data = response.json()
        assert data["ok"] is False
        assert data["error"] == "bad_request"
        assert data["message"] == "Missing files. Expect fields: clients, transactions"

    @pytest.mark.asyncio
    async def test_invalid_reference_date(self, client):
        response = await client.post("/api/upload", files=_files(), data={"as_of": "someday"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_non_utf8_upload(self, client):
        files = _files()
        files["clients"] = ("clients.csv", b"ClientID\n\xff\xfe\n", "text/csv")
        response = await client.post("/api/upload", files=files)
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_csv"

    @pytest.mark.asyncio
    async def test_oversize_upload(self, client, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 16)
        response = await client.post("/api/upload", files=_files())
        assert response.status_code == 413


class TestRuns:
    @pytest.mark.asyncio
    async def test_create_run(self, client, pack_writer):
        response = await client.post(
            "/api/v1/runs",
            files=_files(),
            data={"as_of": "2025-06-15", "organisation": "Harbour Accounting", "sector": "accounting"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["orphaned_transactions"] == 1
        assert data["reference_time"].startswith("2025-06-15")
        assert [c["rule"] for c in data["cases"]] == ["STRUCTURING", "HIGH_RISK_CORRIDOR", "LARGE_DOMESTIC"]
        assert all(c["narrative"].startswith("Rule ") for c in data["cases"])
        assert data["download_url"] == f"/api/v1/runs/{data['run_id']}/download"
        assert data["share_url"] == f"/api/v1/share/{data['token']}"
        assert set(data["manifest"]) == {"clients.json", "transactions.json", "cases.json", "program.html"}

        program = (pack_writer.runs_dir / data["run_id"] / "program.html").read_text(encoding="utf-8")
        assert "Harbour Accounting" in program

    @pytest.mark.asyncio
    async def test_download_zip(self, client):
        run = (await client.post("/api/v1/runs", files=_files(), data={"as_of": "2025-06-15"})).json()
        response = await client.get(run["download_url"])
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert f"TrancheReady_{run['run_id']}.zip" in response.headers["content-disposition"]
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            assert "manifest.json" in zf.namelist()

    @pytest.mark.asyncio
    async def test_share_link_verifies(self, client):
        run = (await client.post("/api/v1/runs", files=_files(), data={"as_of": "2025-06-15"})).json()
        response = await client.get(run["share_url"])
        assert response.status_code == 200
        data = response.json()
        assert data["run_id"] == run["run_id"]
        assert data["verified"] is True
        assert data["manifest"] == run["manifest"]

    @pytest.mark.asyncio
    async def test_share_link_detects_tampering(self, client, pack_writer):
        run = (await client.post("/api/v1/runs", files=_files(), data={"as_of": "2025-06-15"})).json()
        (pack_writer.runs_dir / run["run_id"] / "clients.json").write_text("[]", encoding="utf-8")
        data = (await client.get(run["share_url"])).json()
        assert data["verified"] is False
        assert data["verification"]["clients.json"] is False

    @pytest.mark.asyncio
    async def test_unknown_token(self, client):
        response = await client.get("/api/v1/share/not-a-token")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_unknown_run(self, client):
        response = await client.get(f"/api/v1/runs/{'0' * 32}/download")
        assert response.status_code == 404
