"""Error taxonomy for deploy runs.

Every fatal condition raised by a component derives from DeployError so the
CLI can turn it into a failure reason and a nonzero exit code.
"""
from typing import Optional, Sequence


class DeployError(RuntimeError):
    """Base class for deploy failures."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ConfigError(DeployError):
    """Raised when a required input is missing or an input is malformed."""


class HostUnreachableError(DeployError):
    """Raised when the integration server host cannot be resolved."""


class NotFoundError(DeployError):
    """Raised when the package root directory does not exist."""


class NoMatchError(DeployError):
    """Raised when no package directory matched the selection (nothing to do)."""


class ArchiveError(DeployError):
    """Raised when building the upload artifact fails."""


class UploadError(DeployError):
    """Raised when the server rejects the upload or answers with an unexpected body."""

    def __init__(self, reason: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(reason)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.body:
            return f"{self.reason}: {self.body}"
        return self.reason


class PollTimeoutError(DeployError):
    """Raised on request when packages never reported STARTED."""

    def __init__(self, names: Sequence[str]):
        super().__init__(
            f"packages did not reach STARTED in time: {', '.join(names)}"
        )
        self.names = tuple(names)
