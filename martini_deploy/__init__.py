"""
martini_deploy - package upload for Martini integration servers.

Zips package directories, uploads them to ``/esbapi/packages/upload`` and,
when the server only accepts the upload asynchronously, polls every package
until it reports STARTED.

Usage:
    from martini_deploy import DeployConfig, DeployOrchestrator

    config = DeployConfig(base_url="https://martini.example.com", access_token=token)
    async with DeployOrchestrator(config) as orchestrator:
        report = await orchestrator.run()

    for output in report.outputs:
        print(output.as_dict())
"""
from .errors import (
    ArchiveError,
    ConfigError,
    DeployError,
    HostUnreachableError,
    NoMatchError,
    NotFoundError,
    PollTimeoutError,
    UploadError,
)
from .models import (
    DeployConfig,
    PackageCandidate,
    PollOutcome,
    PollState,
    UploadOutcome,
    UploadRecord,
    UploadResult,
)
from .orchestrator import DeployOrchestrator, DeployReport, PackageOutput, PackageSelector

__version__ = "0.1.0"
__all__ = [
    # Main
    "DeployOrchestrator",
    "DeployReport",
    "PackageOutput",
    "PackageSelector",
    # Models
    "DeployConfig",
    "PackageCandidate",
    "PollOutcome",
    "PollState",
    "UploadOutcome",
    "UploadRecord",
    "UploadResult",
    # Errors
    "DeployError",
    "ConfigError",
    "HostUnreachableError",
    "NotFoundError",
    "NoMatchError",
    "ArchiveError",
    "UploadError",
    "PollTimeoutError",
]
