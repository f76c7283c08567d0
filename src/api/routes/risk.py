"""Risk scoring and evidence pack API endpoints.

Clients and transactions are uploaded as two CSV files. ``/api/upload``
returns the score table only; ``/api/v1/runs`` runs the full batch, writes
an evidence pack and returns its share token.
"""

from datetime import date

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from src.config import settings
from src.domains.risk.config import RiskEngineConfig
from src.domains.risk.engine import RiskEngine
from src.evidence.narrative import NarrativeWriter
from src.evidence.pack import EvidencePackWriter
from src.evidence.program_doc import render_program_html
from src.ingest.csv_reader import parse_csv

logger = structlog.get_logger()
router = APIRouter(tags=["risk"])

# Module-level singleton (would be dependency-injected in production)
_engine = RiskEngine(RiskEngineConfig.from_env())


def get_engine() -> RiskEngine:
    return _engine


def get_pack_writer() -> EvidencePackWriter:
    return EvidencePackWriter(settings.runs_dir)


def get_narrative_writer() -> NarrativeWriter:
    return NarrativeWriter(settings)


async def _read_csv(upload: UploadFile | None, field: str) -> list[dict[str, str]]:
    if upload is None:
        raise ValueError("Missing files. Expect fields: clients, transactions")
    data = await upload.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"{field} file is too large")
    return parse_csv(data)


# ---------------------------------------------------------------------------
# Score table
# ---------------------------------------------------------------------------


@router.post("/api/upload")
async def upload(
    clients: UploadFile | None = File(default=None),
    transactions: UploadFile | None = File(default=None),
    as_of: str | None = Form(default=None),
    engine: RiskEngine = Depends(get_engine),
) -> dict:
    """Score every uploaded client. ``as_of`` pins the reference date."""
    client_rows = await _read_csv(clients, "clients")
    transaction_rows = await _read_csv(transactions, "transactions")

    if client_rows:
        logger.debug("sample_client_headers", headers=sorted(client_rows[0]))

    assessment = engine.assess(client_rows, transaction_rows, now=as_of)
    results = [s.to_output() for s in assessment.results]
    return {"ok": True, "count": len(results), "results": results}


# ---------------------------------------------------------------------------
# Runs and evidence packs
# ---------------------------------------------------------------------------


@router.post("/api/v1/runs")
async def create_run(
    clients: UploadFile | None = File(default=None),
    transactions: UploadFile | None = File(default=None),
    organisation: str | None = Form(default=None),
    sector: str | None = Form(default=None),
    as_of: str | None = Form(default=None),
    engine: RiskEngine = Depends(get_engine),
    writer: EvidencePackWriter = Depends(get_pack_writer),
    narrator: NarrativeWriter = Depends(get_narrative_writer),
) -> dict:
    """Score, build cases, narrate them and write an evidence pack."""
    client_rows = await _read_csv(clients, "clients")
    transaction_rows = await _read_csv(transactions, "transactions")

    assessment = engine.assess(client_rows, transaction_rows, now=as_of)
    cases = await narrator.narrate_all(assessment.cases)

    program_html = render_program_html(
        organisation=organisation or settings.organisation_name,
        sector=sector or settings.default_sector,
        generated_on=date.today(),
        config=engine.config,
    )
    pack = writer.write(assessment, program_html, cases=cases)

    return {
        "ok": True,
        "run_id": pack.run_id,
        "token": pack.token,
        "reference_time": assessment.reference_time.isoformat(),
        "orphaned_transactions": assessment.orphaned_transactions,
        "results": [s.to_output() for s in assessment.results],
        "cases": [c.to_output() for c in cases],
        "manifest": pack.manifest,
        "download_url": f"/api/v1/runs/{pack.run_id}/download",
        "share_url": f"/api/v1/share/{pack.token}",
    }


@router.get("/api/v1/runs/{run_id}/download")
async def download_run(
    run_id: str,
    writer: EvidencePackWriter = Depends(get_pack_writer),
) -> FileResponse:
    path = writer.zip_path(run_id)
    return FileResponse(
        path,
        media_type="application/zip",
        filename=f"TrancheReady_{run_id}.zip",
    )


@router.get("/api/v1/share/{token}")
async def verify_share(
    token: str,
    writer: EvidencePackWriter = Depends(get_pack_writer),
) -> dict:
    """Resolve a share token and re-verify the pack against its manifest."""
    run_id = writer.find_by_token(token)
    verification = writer.verify(run_id)
    return {
        "run_id": run_id,
        "manifest": writer.load_manifest(run_id),
        "verification": verification,
        "verified": all(verification.values()),
    }
