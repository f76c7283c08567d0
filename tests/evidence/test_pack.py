"""Tests for evidence pack writing and verification."""

import json
import zipfile

import pytest

from src.domains.risk.engine import RiskEngine
from src.evidence.pack import (
    MANIFEST_FILES,
    MANIFEST_NAME,
    EvidencePackWriter,
    sha256_of_file,
)


@pytest.fixture
def assessment(sample_client_rows, sample_transaction_rows, reference_time):
    return RiskEngine().assess(sample_client_rows, sample_transaction_rows, now=reference_time)


@pytest.fixture
def writer(tmp_path) -> EvidencePackWriter:
    return EvidencePackWriter(tmp_path / "runs")


class TestEvidencePackWriter:
    def test_writes_all_files(self, writer, assessment):
        pack = writer.write(assessment, "<html></html>")
        for name in (*MANIFEST_FILES, MANIFEST_NAME, "evidence_pack.zip", "share.txt"):
            assert (pack.run_dir / name).is_file()
        assert len(pack.run_id) == 32
        assert len(pack.token) == 32

    def test_manifest_hashes_match_files(self, writer, assessment):
        pack = writer.write(assessment, "<html></html>")
        assert set(pack.manifest) == set(MANIFEST_FILES)
        for name, entry in pack.manifest.items():
            path = pack.run_dir / name
            assert entry["sha256"] == sha256_of_file(path)
            assert entry["bytes"] == path.stat().st_size
        assert writer.load_manifest(pack.run_id) == pack.manifest

    def test_json_contents(self, writer, assessment):
        pack = writer.write(assessment, "<html></html>")
        clients = json.loads((pack.run_dir / "clients.json").read_text(encoding="utf-8"))
        cases = json.loads((pack.run_dir / "cases.json").read_text(encoding="utf-8"))
        transactions = json.loads((pack.run_dir / "transactions.json").read_text(encoding="utf-8"))
        assert [c["ClientID"] for c in clients] == ["C-100", "C-300", "C-200"]
        assert [c["rule"] for c in cases] == ["STRUCTURING", "HIGH_RISK_CORRIDOR", "LARGE_DOMESTIC"]
        assert len(transactions) == 9

    def test_cases_override(self, writer, assessment):
        narrated = [c.model_copy(update={"narrative": "n"}) for c in assessment.cases]
        pack = writer.write(assessment, "<html></html>", cases=narrated)
        cases = json.loads((pack.run_dir / "cases.json").read_text(encoding="utf-8"))
        assert all(c["narrative"] == "n" for c in cases)

    def test_zip_contents(self, writer, assessment):
        pack = writer.write(assessment, "<html>program</html>")
        with zipfile.ZipFile(writer.zip_path(pack.run_id)) as zf:
            assert sorted(zf.namelist()) == sorted((*MANIFEST_FILES, MANIFEST_NAME))
            assert zf.read("program.html") == b"<html>program</html>"

    def test_runs_are_isolated(self, writer, assessment):
        first = writer.write(assessment, "<html></html>")
        second = writer.write(assessment, "<html></html>")
        assert first.run_id != second.run_id
        assert first.token != second.token


class TestShareTokens:
    def test_find_by_token(self, writer, assessment):
        pack = writer.write(assessment, "<html></html>")
        writer.write(assessment, "<html></html>")
        assert writer.find_by_token(pack.token) == pack.run_id

    @pytest.mark.parametrize("token", ["nope", "", "ü" * 32])
    def test_unknown_token(self, writer, assessment, token):
        writer.write(assessment, "<html></html>")
        with pytest.raises(LookupError):
            writer.find_by_token(token)

    def test_no_runs_dir(self, tmp_path):
        with pytest.raises(LookupError):
            EvidencePackWriter(tmp_path / "missing").find_by_token("abc")


class TestVerification:
    def test_untouched_pack_verifies(self, writer, assessment):
        pack = writer.write(assessment, "<html></html>")
        assert writer.verify(pack.run_id) == {name: True for name in MANIFEST_FILES}

    def test_tampered_file_detected(self, writer, assessment):
        pack = writer.write(assessment, "<html></html>")
        (pack.run_dir / "cases.json").write_text("[]", encoding="utf-8")
        result = writer.verify(pack.run_id)
        assert result["cases.json"] is False
        assert result["clients.json"] is True

    def test_deleted_file_detected(self, writer, assessment):
        pack = writer.write(assessment, "<html></html>")
        (pack.run_dir / "program.html").unlink()
        assert writer.verify(pack.run_id)["program.html"] is False


class TestRunLookup:
    @pytest.mark.parametrize("run_id", ["../etc", "0" * 32, "not-a-run", "A" * 32])
    def test_unknown_run(self, writer, run_id):
        with pytest.raises(LookupError):
            writer.zip_path(run_id)
