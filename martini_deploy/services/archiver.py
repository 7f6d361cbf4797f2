"""
Archive Service - Single Responsibility: build the upload artifact.

Each package directory becomes a top-level entry named after the directory,
with all of its descendants stored underneath. Entries are written in sorted
order with a fixed timestamp so identical trees give identical archives.
"""
import asyncio
import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..errors import ArchiveError
from ..models import PackageCandidate

logger = logging.getLogger(__name__)

FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


class ArchiveService:
    """Zips package directories into a single artifact."""

    def __init__(self, artifact_name: str = "packages.zip", compresslevel: int = 9):
        self._artifact_name = artifact_name
        self._compresslevel = compresslevel

    @staticmethod
    def _iter_tree(root: Path) -> Iterator[Path]:
        """Yield every descendant of ``root`` in sorted, depth-first order."""
        for child in sorted(root.iterdir(), key=lambda p: p.name):
            yield child
            if child.is_dir() and not child.is_symlink():
                yield from ArchiveService._iter_tree(child)

    def _add_entry(self, zf: zipfile.ZipFile, path: Path, arcname: str) -> None:
        if path.is_dir():
            info = zipfile.ZipInfo(arcname.rstrip("/") + "/", date_time=FIXED_DATE_TIME)
            info.external_attr = (0o40755 << 16) | 0x10
            zf.writestr(info, b"")
            return

        info = zipfile.ZipInfo(arcname, date_time=FIXED_DATE_TIME)
        info.external_attr = 0o644 << 16
        info.compress_type = zipfile.ZIP_DEFLATED
        zf.writestr(info, path.read_bytes(), compresslevel=self._compresslevel)

    def archive(
        self,
        candidates: Sequence[PackageCandidate],
        dest_dir: Optional[Path] = None,
    ) -> Path:
        """
        Build the artifact.

        Args:
            candidates: Package directories to include
            dest_dir: Output directory (a fresh temp dir when omitted)

        Returns:
            Path to the zip file

        Raises:
            ArchiveError: on any I/O failure; no partial file is left behind
        """
        if dest_dir is None:
            dest_dir = Path(tempfile.mkdtemp(prefix="martini-deploy-"))
        artifact = Path(dest_dir) / self._artifact_name

        try:
            with zipfile.ZipFile(artifact, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for candidate in candidates:
                    root = Path(candidate.source_path)
                    logger.info(f"Zipping package: {candidate.name}")
                    self._add_entry(zf, root, candidate.name)
                    for path in self._iter_tree(root):
                        rel = path.relative_to(root).as_posix()
                        self._add_entry(zf, path, f"{candidate.name}/{rel}")
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            self.discard(artifact)
            raise ArchiveError(f"could not build archive {artifact}: {exc}") from exc

        logger.debug(f"Archive ready: {artifact} ({artifact.stat().st_size} bytes)")
        return artifact

    async def archive_async(
        self,
        candidates: Sequence[PackageCandidate],
        dest_dir: Optional[Path] = None,
    ) -> Path:
        """Build the artifact in a worker thread to keep the event loop free."""
        return await asyncio.to_thread(self.archive, candidates, dest_dir)

    @staticmethod
    def discard(artifact: Path) -> None:
        """Remove an artifact and, if it is now empty, its temp directory."""
        try:
            artifact.unlink(missing_ok=True)
            parent = artifact.parent
            if parent.name.startswith("martini-deploy-") and not any(parent.iterdir()):
                os.rmdir(parent)
        except OSError as exc:
            logger.warning(f"Could not remove artifact {artifact}: {exc}")
