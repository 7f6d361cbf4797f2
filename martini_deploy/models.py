"""
Models for martini_deploy.

Immutable dataclasses for run-scoped values; PollOutcome is the one record
that is updated while a package is being polled.
"""
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


STARTED_STATUS = "STARTED"


class UploadOutcome(Enum):
    """How the server answered the upload."""
    SYNC = "sync"          # 2xx, deployment finished in the request
    ACCEPTED = "accepted"  # 504, deployment continues server-side
    FAILED = "failed"


class PollState(Enum):
    """Per-package confirmation state."""
    WAITING = "waiting"
    STARTED = "started"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PackageCandidate:
    """A package directory selected for archiving."""
    name: str
    source_path: Path


@dataclass(frozen=True)
class UploadRecord:
    """One element of the upload response array."""
    name: str
    id: str = ""
    status: str = ""
    version: str = ""

    @classmethod
    def empty(cls, name: str) -> "UploadRecord":
        return cls(name=name)

    @classmethod
    def from_json(cls, item: Dict[str, Any]) -> "UploadRecord":
        def _text(key: str) -> str:
            value = item.get(key)
            return "" if value is None else str(value)

        return cls(
            name=_text("name"),
            id=_text("id"),
            status=_text("status"),
            version=_text("version"),
        )


@dataclass(frozen=True)
class UploadResult:
    """Immutable result of the archive upload."""
    http_status: int
    records: Tuple[UploadRecord, ...] = ()
    body: str = ""

    @property
    def outcome(self) -> UploadOutcome:
        if 200 <= self.http_status < 300:
            return UploadOutcome.SYNC
        if self.http_status == 504:
            return UploadOutcome.ACCEPTED
        return UploadOutcome.FAILED

    def record_for(self, name: str) -> UploadRecord:
        """Return the record for ``name``, or an empty-valued one if the server omitted it."""
        for record in self.records:
            if record.name == name:
                return record
        return UploadRecord.empty(name)


@dataclass
class PollOutcome:
    """Status confirmation for a single package."""
    name: str
    state: PollState = PollState.WAITING
    last_status: Optional[str] = None
    attempts: int = 0
    payload: Optional[Dict[str, Any]] = None

    @property
    def terminal(self) -> bool:
        return self.state in (PollState.STARTED, PollState.TIMED_OUT)

    @property
    def started(self) -> bool:
        return self.state == PollState.STARTED

    def to_evidence(self) -> str:
        """Render a single self-contained evidence line."""
        if self.state == PollState.STARTED:
            return f"{self.name} STARTED after {self.attempts} attempt(s): {json.dumps(self.payload, sort_keys=True)}"
        if self.state == PollState.TIMED_OUT:
            last = self.last_status or "no status"
            return f"{self.name} TIMED_OUT after {self.attempts} attempt(s) (last: {last})"
        return f"{self.name} WAITING after {self.attempts} attempt(s)"


@dataclass(frozen=True)
class DeployConfig:
    """Immutable configuration for one deploy run."""
    base_url: str
    access_token: str
    package_dir: Path = Path("packages")
    package_name_pattern: str = ".*"
    allowed_packages: Tuple[str, ...] = ()
    async_upload: bool = False
    max_attempts: int = 6
    delay_seconds: float = 30.0
    success_check_package_name: Optional[str] = None
    request_timeout: float = 60.0
    fail_on_empty: bool = False
    fail_on_timeout: bool = False

    @property
    def api_root(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def upload_url(self) -> str:
        return f"{self.api_root}/esbapi/packages/upload"
