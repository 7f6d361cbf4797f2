"""Orchestrator data models."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import PollTimeoutError
from ..models import PackageCandidate, PollOutcome, UploadRecord, UploadResult


@dataclass(frozen=True)
class PackageOutput:
    """Output values for one package."""
    key_prefix: str
    record: UploadRecord

    def as_dict(self) -> Dict[str, str]:
        return {
            f"{self.key_prefix}_id": self.record.id,
            f"{self.key_prefix}_name": self.record.name,
            f"{self.key_prefix}_status": self.record.status,
            f"{self.key_prefix}_version": self.record.version,
        }


@dataclass
class DeployReport:
    """Result of a deploy run."""
    success: bool
    candidates: List[PackageCandidate]
    upload: Optional[UploadResult] = None
    outputs: List[PackageOutput] = field(default_factory=list)
    poll_outcomes: List[PollOutcome] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def timed_out(self) -> List[str]:
        return [outcome.name for outcome in self.poll_outcomes if not outcome.started]

    @property
    def evidence(self) -> List[str]:
        return [outcome.to_evidence() for outcome in self.poll_outcomes]

    def raise_for_timeouts(self) -> None:
        """Raise PollTimeoutError if any polled package never reported STARTED."""
        if self.timed_out:
            raise PollTimeoutError(self.timed_out)
