"""Named step outputs for each deployed package."""
import logging
import re
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..errors import ConfigError
from ..models import PackageCandidate, UploadRecord, UploadResult
from .models import PackageOutput

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_]")
OUTPUT_FIELDS = ("id", "name", "status", "version")


def sanitize_key(value: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_]`` with ``_``."""
    return _UNSAFE_KEY_CHARS.sub("_", value)


def check_unique_keys(candidates: Sequence[PackageCandidate]) -> None:
    """Reject selections where two package names sanitize to the same output key."""
    seen: Dict[str, str] = {}
    clashes = []
    for candidate in candidates:
        key = sanitize_key(candidate.name)
        if key in seen:
            clashes.append(f"{seen[key]!r} and {candidate.name!r} -> {key!r}")
        else:
            seen[key] = candidate.name
    if clashes:
        raise ConfigError(f"package names collide as output keys: {'; '.join(clashes)}")


def build_outputs(
    candidates: Sequence[PackageCandidate],
    upload: Optional[UploadResult],
) -> List[PackageOutput]:
    """One output set per candidate, empty-valued when the server omitted it."""
    check_unique_keys(candidates)
    outputs = []
    for candidate in candidates:
        record = upload.record_for(candidate.name) if upload else UploadRecord.empty(candidate.name)
        outputs.append(PackageOutput(key_prefix=sanitize_key(candidate.name), record=record))
    return outputs


def flatten_outputs(outputs: Sequence[PackageOutput]) -> Dict[str, str]:
    """
    Flatten output sets into ``<package>_<field>`` keys.

    A single package also gets the plain ``id``/``name``/``status``/``version``
    keys used by single-package workflows.
    """
    values: Dict[str, str] = {}
    for output in outputs:
        values.update(output.as_dict())
    if len(outputs) == 1:
        record = outputs[0].record
        values.update({field: getattr(record, field) for field in OUTPUT_FIELDS})
    return values


def write_outputs(values: Dict[str, str], path: Optional[Path]) -> None:
    """Append outputs to a GitHub Actions output file, or log them if none is set."""
    if path is None:
        for key, value in values.items():
            logger.info(f"output {key}={value}")
        return

    lines = []
    for key, value in values.items():
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            lines.append(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
        else:
            lines.append(f"{key}={value}\n")

    with Path(path).open("a", encoding="utf-8") as handle:
        handle.write("".join(lines))
