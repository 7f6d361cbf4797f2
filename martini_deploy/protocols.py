"""
Protocols (Interfaces) for Dependency Inversion.

Small, focused interfaces so the orchestrator can run against test doubles.
"""
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Sequence, runtime_checkable

from .models import PackageCandidate


@runtime_checkable
class ITransport(Protocol):
    """Interface for authenticated HTTP calls to the integration server."""

    async def post_file(
        self,
        endpoint: str,
        path: Path,
        field: str = "file",
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Multipart upload of a single file."""
        ...

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """GET request expecting JSON; ``retries`` caps transport-level attempts."""
        ...


@runtime_checkable
class IArchiver(Protocol):
    """Interface for building the upload artifact."""

    async def archive_async(
        self,
        candidates: Sequence[PackageCandidate],
        dest_dir: Optional[Path] = None,
    ) -> Path:
        """Zip candidates into a single artifact and return its path."""
        ...
