"""Tests for martini_deploy models."""
import json
from pathlib import Path

import pytest

from martini_deploy.models import (
    DeployConfig,
    PackageCandidate,
    PollOutcome,
    PollState,
    UploadOutcome,
    UploadRecord,
    UploadResult,
)


class TestUploadRecord:
    def test_from_json_stringifies_fields(self):
        record = UploadRecord.from_json({"name": "a", "id": 12, "status": "STARTED", "version": 3})
        assert record == UploadRecord(name="a", id="12", status="STARTED", version="3")

    def test_from_json_missing_fields_are_empty(self):
        record = UploadRecord.from_json({"name": "a", "id": None})
        assert record.id == ""
        assert record.status == ""
        assert record.version == ""

    def test_empty(self):
        record = UploadRecord.empty("orders")
        assert record.name == "orders"
        assert (record.id, record.status, record.version) == ("", "", "")

    def test_immutable(self):
        record = UploadRecord.empty("a")
        with pytest.raises(Exception):
            record.id = "1"


class TestUploadResult:
    @pytest.mark.parametrize(
        "status, outcome",
        [
            (200, UploadOutcome.SYNC),
            (201, UploadOutcome.SYNC),
            (504, UploadOutcome.ACCEPTED),
            (500, UploadOutcome.FAILED),
            (401, UploadOutcome.FAILED),
        ],
    )
    def test_outcome(self, status, outcome):
        assert UploadResult(http_status=status).outcome == outcome

    def test_record_for_matches_by_name(self):
        result = UploadResult(
            http_status=200,
            records=(UploadRecord("a", "1", "STARTED", "3"), UploadRecord("c", "2", "STARTED", "1")),
        )
        assert result.record_for("c").id == "2"

    def test_record_for_unknown_name_is_empty(self):
        result = UploadResult(http_status=200, records=(UploadRecord("a", "1"),))
        assert result.record_for("b") == UploadRecord.empty("b")


class TestPollOutcome:
    def test_waiting_is_not_terminal(self):
        outcome = PollOutcome(name="a")
        assert outcome.state == PollState.WAITING
        assert outcome.terminal is False

    def test_started_evidence_contains_payload(self):
        payload = {"name": "a", "status": "STARTED"}
        outcome = PollOutcome(name="a", state=PollState.STARTED, attempts=2, payload=payload)
        line = outcome.to_evidence()
        assert outcome.terminal is True
        assert line.startswith("a STARTED after 2 attempt(s)")
        assert json.dumps(payload, sort_keys=True) in line
        assert "\n" not in line

    def test_timed_out_evidence(self):
        outcome = PollOutcome(name="a", state=PollState.TIMED_OUT, attempts=6, last_status="STOPPED")
        assert outcome.terminal is True
        assert outcome.started is False
        assert outcome.to_evidence() == "a TIMED_OUT after 6 attempt(s) (last: STOPPED)"


class TestDeployConfig:
    def test_defaults(self):
        config = DeployConfig(base_url="https://m.example.com", access_token="t")
        assert config.package_dir == Path("packages")
        assert config.package_name_pattern == ".*"
        assert config.allowed_packages == ()
        assert config.async_upload is False
        assert config.max_attempts == 6
        assert config.delay_seconds == 30.0
        assert config.success_check_package_name is None

    def test_upload_url_strips_trailing_slash(self):
        config = DeployConfig(base_url="https://m.example.com/", access_token="t")
        assert config.upload_url == "https://m.example.com/esbapi/packages/upload"

    def test_candidate_immutable(self):
        candidate = PackageCandidate("a", Path("packages/a"))
        with pytest.raises(Exception):
            candidate.name = "b"
