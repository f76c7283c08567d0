"""Evidence packs: per-run JSON artefacts, program document, SHA-256 manifest, ZIP.

Layout of ``<runs_dir>/<run_id>/``::

    clients.json        score table, highest score first
    transactions.json   normalized transactions
    cases.json          monitoring cases
    program.html        AML/CTF program document
    manifest.json       {file: {"sha256": ..., "bytes": ...}}
    evidence_pack.zip   all of the above
    share.txt           share token for the verification link
"""

import hashlib
import hmac
import json
import re
import uuid
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from src.domains.risk.models import BatchAssessment, MonitoringCase

logger = structlog.get_logger()

MANIFEST_FILES = ("clients.json", "transactions.json", "cases.json", "program.html")
MANIFEST_NAME = "manifest.json"
ZIP_NAME = "evidence_pack.zip"
TOKEN_NAME = "share.txt"

_RUN_ID = re.compile(r"^[0-9a-f]{32}$")


@dataclass
class EvidencePack:
    run_id: str
    run_dir: Path
    token: str
    manifest: dict[str, dict] = field(default_factory=dict)

    @property
    def zip_path(self) -> Path:
        return self.run_dir / ZIP_NAME

    def to_dict(self) -> dict:
        return {"run_id": self.run_id, "token": self.token, "manifest": self.manifest}


def sha256_of_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


class EvidencePackWriter:
    """Writes and looks up evidence packs under a runs directory."""

    def __init__(self, runs_dir: str | Path) -> None:
        self.runs_dir = Path(runs_dir)

    def _run_dir(self, run_id: str) -> Path:
        if not _RUN_ID.match(run_id):
            raise LookupError(f"Unknown run: {run_id}")
        run_dir = self.runs_dir / run_id
        if not run_dir.is_dir():
            raise LookupError(f"Unknown run: {run_id}")
        return run_dir

    def write(
        self,
        assessment: BatchAssessment,
        program_html: str,
        cases: list[MonitoringCase] | None = None,
    ) -> EvidencePack:
        """Persist one run. ``cases`` overrides the assessment's cases (e.g. with narratives)."""
        run_id = uuid.uuid4().hex
        run_dir = self.runs_dir / run_id
        run_dir.mkdir(parents=True, exist_ok=False)

        _write_json(run_dir / "clients.json", [s.to_output() for s in assessment.results])
        _write_json(
            run_dir / "transactions.json",
            [tx.to_output() for tx in assessment.transactions],
        )
        _write_json(
            run_dir / "cases.json",
            [c.to_output() for c in (cases if cases is not None else assessment.cases)],
        )
        (run_dir / "program.html").write_text(program_html, encoding="utf-8")

        manifest = {
            name: {
                "sha256": sha256_of_file(run_dir / name),
                "bytes": (run_dir / name).stat().st_size,
            }
            for name in MANIFEST_FILES
        }
        _write_json(run_dir / MANIFEST_NAME, manifest)

        with zipfile.ZipFile(run_dir / ZIP_NAME, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name in (*MANIFEST_FILES, MANIFEST_NAME):
                zf.write(run_dir / name, arcname=name)

        token = uuid.uuid4().hex
        (run_dir / TOKEN_NAME).write_text(token, encoding="utf-8")

        logger.info(
            "evidence_pack_written",
            run_id=run_id,
            client_count=len(assessment.results),
            case_count=len(cases if cases is not None else assessment.cases),
            zip_bytes=(run_dir / ZIP_NAME).stat().st_size,
        )
        return EvidencePack(run_id=run_id, run_dir=run_dir, token=token, manifest=manifest)

    def zip_path(self, run_id: str) -> Path:
        path = self._run_dir(run_id) / ZIP_NAME
        if not path.is_file():
            raise LookupError(f"No evidence pack for run: {run_id}")
        return path

    def load_manifest(self, run_id: str) -> dict[str, dict]:
        path = self._run_dir(run_id) / MANIFEST_NAME
        if not path.is_file():
            raise LookupError(f"No manifest for run: {run_id}")
        return json.loads(path.read_text(encoding="utf-8"))

    def find_by_token(self, token: str) -> str:
        """Return the run id whose share token matches."""
        if self.runs_dir.is_dir():
            for run_dir in sorted(self.runs_dir.iterdir()):
                token_path = run_dir / TOKEN_NAME
                if not token_path.is_file():
                    continue
                stored = token_path.read_text(encoding="utf-8").strip()
                if hmac.compare_digest(stored.encode(), token.encode()):
                    return run_dir.name
        raise LookupError("Invalid token")

    def verify(self, run_id: str) -> dict[str, bool]:
        """Re-hash every manifest entry; True where the file is unchanged."""
        run_dir = self._run_dir(run_id)
        manifest = self.load_manifest(run_id)
        results: dict[str, bool] = {}
        for name, entry in manifest.items():
            path = run_dir / name
            results[name] = path.is_file() and sha256_of_file(path) == entry.get("sha256")
        tampered = [name for name, ok in results.items() if not ok]
        if tampered:
            logger.warning("evidence_pack_tampered", run_id=run_id, files=tampered)
        return results
