"""Package directory selection."""
import logging
import re
from pathlib import Path
from typing import List, Sequence

from ..errors import ConfigError, NotFoundError
from ..models import PackageCandidate

logger = logging.getLogger(__name__)


class PackageSelector:
    """Selects package directories directly under a root folder."""

    @staticmethod
    def select(
        root: Path,
        pattern: str = ".*",
        allowed: Sequence[str] = (),
    ) -> List[PackageCandidate]:
        """
        List immediate subdirectories of ``root`` that should be deployed.

        Args:
            root: Folder holding one directory per package
            pattern: Regular expression that must match the whole name
            allowed: Explicit names; when given, ``pattern`` is ignored

        Returns:
            Candidates sorted by name (possibly empty)
        """
        root = Path(root)
        if not root.is_dir():
            raise NotFoundError(f"package directory not found: {root}")

        allowed_set = {name for name in allowed if name}
        matcher = None
        if not allowed_set:
            try:
                matcher = re.compile(pattern or ".*")
            except re.error as exc:
                raise ConfigError(f"invalid package_name_pattern {pattern!r}: {exc}") from exc

        try:
            entries = sorted(root.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise NotFoundError(f"cannot read package directory {root}: {exc}") from exc

        candidates = []
        for entry in entries:
            if not entry.is_dir():
                continue
            if allowed_set:
                if entry.name not in allowed_set:
                    continue
            elif not matcher.fullmatch(entry.name):
                continue
            candidates.append(PackageCandidate(name=entry.name, source_path=entry))

        logger.debug(f"Selected {len(candidates)} package(s) under {root}")
        return candidates
