"""Command line interface for martini_deploy."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, Sequence, Tuple

from rich.logging import RichHandler

from .console import mask_secret, render_configuration_summary, render_evidence, render_outputs
from .errors import ConfigError, DeployError, NoMatchError
from .models import DeployConfig
from .orchestrator import DeployOrchestrator, DeployReport
from .orchestrator.outputs import flatten_outputs, write_outputs

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default level is INFO so CI logs show progress. Returns a string
    describing the effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent:
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        env_level = os.getenv("LOG_LEVEL")
        level = getattr(logging, (env_level or "INFO").upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _parse_env_line(raw_line: str) -> Optional[Tuple[str, str]]:
    """Split one ``KEY=value`` line; comments, blanks and junk give None."""
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export ") :].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    key, _, value = line.partition("=")
    key, value = key.strip(), value.strip()
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1]
    return key, value


def _load_env_file(path: Path, environ: MutableMapping[str, str] = os.environ) -> int:
    """
    Load ``KEY=value`` pairs into ``environ`` without overriding set variables.

    Returns the number of variables applied.
    """
    if not path.is_file():
        raise ConfigError(f"env file not found: {path}")
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigError(f"could not read env file {path}: {exc}") from exc

    applied = 0
    for pair in filter(None, map(_parse_env_line, lines)):
        key, value = pair
        if key not in environ:
            environ[key] = value
            applied += 1
    return applied


def _default_env_file() -> Optional[Path]:
    candidate = Path(".env")
    return candidate if candidate.is_file() else None


def _env_input(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Read an input the way GitHub Actions passes it, then the plain MARTINI_ variable."""
    key = name.upper()
    for candidate in (f"INPUT_{key}", f"MARTINI_{key}"):
        value = environ.get(candidate)
        if value is not None and value.strip() != "":
            return value.strip()
    return None


def _parse_bool(name: str, value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: Optional[str], default: int, minimum: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _parse_float(name: str, value: Optional[str], default: float, minimum: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
    if parsed < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    items = value.replace("\n", ",").split(",")
    return tuple(item.strip() for item in items if item.strip())


def _resolve_config(args: argparse.Namespace, environ: Mapping[str, str]) -> DeployConfig:
    """Build the run configuration: flag, then INPUT_*/MARTINI_* variable, then default."""

    def pick(name: str) -> Optional[str]:
        value = getattr(args, name, None)
        if value is not None:
            return str(value)
        return _env_input(environ, name)

    base_url = pick("base_url")
    if not base_url:
        raise ConfigError("base_url is required (--base-url or INPUT_BASE_URL)")
    access_token = pick("access_token")
    if not access_token:
        raise ConfigError("access_token is required (--access-token or INPUT_ACCESS_TOKEN)")

    max_attempts_raw = pick("max_attempts") or _env_input(environ, "success_check_timeout")

    return DeployConfig(
        base_url=base_url,
        access_token=access_token,
        package_dir=Path(pick("package_dir") or "packages"),
        package_name_pattern=pick("package_name_pattern") or ".*",
        allowed_packages=_split_list(pick("allowed_packages")),
        async_upload=_parse_bool("async_upload", pick("async_upload")),
        max_attempts=_parse_int("success_check_timeout", max_attempts_raw, default=6, minimum=1),
        delay_seconds=_parse_float(
            "success_check_delay", pick("success_check_delay"), default=30.0, minimum=0
        ),
        success_check_package_name=pick("success_check_package_name"),
        request_timeout=_parse_float(
            "request_timeout", pick("request_timeout"), default=60.0, minimum=1
        ),
        fail_on_empty=_parse_bool("fail_on_empty", pick("fail_on_empty")),
        fail_on_timeout=_parse_bool("fail_on_timeout", pick("fail_on_timeout")),
    )


def _append_evidence(path: Optional[Path], lines: Sequence[str]) -> None:
    if path is None or not lines:
        return
    with Path(path).open("a", encoding="utf-8") as handle:
        for line in lines:
            handle.write(f"{line}\n")


def _report_summary(config: DeployConfig, report: DeployReport) -> str:
    upload = report.upload
    status = upload.http_status if upload else "-"
    mode = "async" if config.async_upload else "sync"
    return f"{len(report.candidates)} package(s), HTTP {status}, {mode} mode"


async def _run_deploy(
    config: DeployConfig,
    output_path: Optional[Path],
    evidence_log: Optional[Path],
) -> int:
    async with DeployOrchestrator(config) as orchestrator:
        report = await orchestrator.run()

    values = flatten_outputs(report.outputs)
    write_outputs(values, output_path)
    render_outputs(values)

    if report.poll_outcomes:
        render_evidence(report.poll_outcomes)
        _append_evidence(evidence_log, report.evidence)

    if not report.success:
        print(f"ERROR: {report.reason}", file=sys.stderr)
        return 1

    if report.timed_out:
        logger.warning(f"Not confirmed as STARTED: {', '.join(report.timed_out)}")
        if config.fail_on_timeout:
            report.raise_for_timeouts()

    logger.info(f"Deploy finished: {_report_summary(config, report)}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="martini-deploy",
        description="Zip package directories and upload them to a Martini server.",
    )
    parser.add_argument("--base-url", dest="base_url", default=None, help="Martini base URL")
    parser.add_argument(
        "--access-token",
        dest="access_token",
        default=None,
        help="Bearer token (prefer INPUT_ACCESS_TOKEN in CI)",
    )
    parser.add_argument(
        "--package-dir",
        dest="package_dir",
        default=None,
        help="Folder holding one directory per package (default: packages)",
    )
    parser.add_argument(
        "--package-name-pattern",
        dest="package_name_pattern",
        default=None,
        help="Regular expression a package name must fully match",
    )
    parser.add_argument(
        "--allowed-packages",
        dest="allowed_packages",
        default=None,
        help="Comma separated package names; overrides --package-name-pattern",
    )
    parser.add_argument(
        "--async-upload",
        dest="async_upload",
        action="store_const",
        const="true",
        default=None,
        help="Accept HTTP 504 and poll packages until they report STARTED",
    )
    parser.add_argument(
        "--max-attempts",
        dest="max_attempts",
        default=None,
        help="Status checks per package (default: 6)",
    )
    parser.add_argument(
        "--success-check-delay",
        dest="success_check_delay",
        default=None,
        help="Seconds between status checks (default: 30)",
    )
    parser.add_argument(
        "--success-check-package-name",
        dest="success_check_package_name",
        default=None,
        help="Only confirm this package instead of every uploaded one",
    )
    parser.add_argument(
        "--request-timeout",
        dest="request_timeout",
        default=None,
        help="HTTP timeout in seconds (default: 60)",
    )
    parser.add_argument(
        "--fail-on-empty",
        dest="fail_on_empty",
        action="store_const",
        const="true",
        default=None,
        help="Exit 1 when no package matched",
    )
    parser.add_argument(
        "--fail-on-timeout",
        dest="fail_on_timeout",
        action="store_const",
        const="true",
        default=None,
        help="Exit 1 when a package never reported STARTED",
    )
    parser.add_argument(
        "--evidence-log",
        type=Path,
        default=None,
        help="Append status check results to this file",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="martini-deploy 0.1.0",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except ConfigError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    try:
        config = _resolve_config(args, os.environ)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    output_file = os.getenv("GITHUB_OUTPUT")
    output_path = Path(output_file) if output_file else None
    evidence_log = args.evidence_log
    if evidence_log is None:
        env_evidence = _env_input(os.environ, "evidence_log")
        evidence_log = Path(env_evidence) if env_evidence else None

    if not args.silent:
        render_configuration_summary(
            {
                "Base URL": config.base_url,
                "Access Token": mask_secret(config.access_token),
                "Package Dir": str(config.package_dir),
                "Pattern": config.package_name_pattern,
                "Allowed": ", ".join(config.allowed_packages) or "-",
                "Async Upload": "yes" if config.async_upload else "no",
                "Status Checks": f"{config.max_attempts} x {config.delay_seconds:g}s",
                "Check Package": config.success_check_package_name or "(all)",
                "Outputs": str(output_path) if output_path else "(log only)",
                "Evidence Log": str(evidence_log) if evidence_log else "-",
                "Env File": str(used_env_file) if used_env_file else "-",
                "Logging": effective_log_mode,
            }
        )

    try:
        return asyncio.run(_run_deploy(config, output_path, evidence_log))
    except NoMatchError as exc:
        if config.fail_on_empty:
            print(f"ERROR: {exc.reason}", file=sys.stderr)
            return 1
        logger.warning(f"Nothing to do: {exc.reason}")
        return 0
    except DeployError as exc:
        logger.error(str(exc))
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
