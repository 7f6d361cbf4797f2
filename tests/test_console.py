"""Tests for console rendering helpers."""
from unittest.mock import Mock

from martini_deploy import console
from martini_deploy.models import PollOutcome, PollState


def test_evidence_style_follows_poll_state(monkeypatch):
    fake = Mock()
    monkeypatch.setattr(console, "console", fake)
    outcomes = [
        PollOutcome("a", PollState.STARTED, "STARTED", 1, {"note": "was TIMED_OUT before"}),
        PollOutcome("STARTED", PollState.TIMED_OUT, "STOPPED", 6),
    ]

    console.render_evidence(outcomes)

    printed = fake.print.call_args_list
    assert [call.args[0] for call in printed] == [o.to_evidence() for o in outcomes]
    assert [call.kwargs["style"] for call in printed] == ["green", "yellow"]


def test_evidence_nothing_to_render(monkeypatch):
    fake = Mock()
    monkeypatch.setattr(console, "console", fake)
    console.render_evidence([])
    fake.rule.assert_not_called()


def test_mask_secret():
    assert console.mask_secret("") == "(missing)"
    assert console.mask_secret("short") == "*****"
    assert console.mask_secret("abcd1234efgh") == "abcd****efgh"
