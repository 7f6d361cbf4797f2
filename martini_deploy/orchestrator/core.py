"""Core orchestrator - coordinates a deploy run."""
import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from ..errors import NoMatchError, NotFoundError
from ..models import DeployConfig, PackageCandidate, UploadOutcome, UploadResult
from ..protocols import IArchiver, ITransport
from ..services.api_client import HTTPAPIClient
from ..services.archiver import ArchiveService
from ..services.network import check_host_reachable
from ..services.status_poller import Sleep, StatusPoller
from ..services.uploader import PackageUploader
from .models import DeployReport
from .outputs import build_outputs, check_unique_keys
from .selector import PackageSelector

logger = logging.getLogger(__name__)

HostCheck = Callable[[str], Awaitable[object]]


class DeployOrchestrator:
    """
    Runs select -> archive -> upload -> (optional) confirm.

    Usage:
        async with DeployOrchestrator(config) as orchestrator:
            report = await orchestrator.run()
    """

    def __init__(
        self,
        config: DeployConfig,
        api_client: Optional[ITransport] = None,
        archiver: Optional[IArchiver] = None,
        selector: Optional[PackageSelector] = None,
        host_check: HostCheck = check_host_reachable,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            config: Run configuration
            api_client: Transport to use; an HTTPAPIClient is owned otherwise
            archiver: Artifact builder (ArchiveService by default)
            selector: Package selector (PackageSelector by default)
            host_check: Pre-flight reachability check
            sleep: Wait between status attempts
        """
        self._config = config
        self._external_client = api_client
        self._owned_client: Optional[HTTPAPIClient] = None
        self._api_client: Optional[ITransport] = api_client
        self._archiver = archiver or ArchiveService()
        self._selector = selector or PackageSelector()
        self._host_check = host_check
        self._sleep = sleep

    async def __aenter__(self):
        if self._external_client is None:
            self._owned_client = HTTPAPIClient(
                self._config.api_root,
                self._config.access_token,
                timeout=self._config.request_timeout,
            )
            await self._owned_client.__aenter__()
            self._api_client = self._owned_client
        return self

    async def __aexit__(self, *args):
        if self._owned_client:
            await self._owned_client.__aexit__(*args)
            self._owned_client = None

    async def _preflight(self) -> None:
        root = Path(self._config.package_dir)
        if not root.is_dir():
            raise NotFoundError(f"package directory not found: {root}")
        await self._host_check(self._config.base_url)

    def _select(self) -> List[PackageCandidate]:
        config = self._config
        candidates = self._selector.select(
            config.package_dir,
            config.package_name_pattern,
            config.allowed_packages,
        )
        if not candidates:
            raise NoMatchError(f"no packages to deploy in {config.package_dir}")
        check_unique_keys(candidates)
        logger.info(f"Packages to deploy: {', '.join(c.name for c in candidates)}")
        return candidates

    async def _upload(self, candidates: List[PackageCandidate]) -> UploadResult:
        artifact = await self._archiver.archive_async(candidates)
        try:
            return await PackageUploader(self._api_client).upload(artifact)
        finally:
            ArchiveService.discard(artifact)

    def _classify(self, upload: UploadResult) -> Optional[str]:
        """Return a failure reason, or None when the upload counts as success."""
        outcome = upload.outcome
        if outcome == UploadOutcome.SYNC:
            return None
        if outcome == UploadOutcome.ACCEPTED and self._config.async_upload:
            return None
        return f"upload not confirmed: HTTP {upload.http_status}"

    def _poll_targets(self, candidates: List[PackageCandidate]) -> List[str]:
        if self._config.success_check_package_name:
            return [self._config.success_check_package_name]
        return [candidate.name for candidate in candidates]

    async def run(self) -> DeployReport:
        """
        Execute one deploy run.

        Raises:
            NotFoundError, HostUnreachableError, NoMatchError, ArchiveError,
            UploadError: fatal conditions, raised before any later step runs
        """
        if self._api_client is None:
            raise RuntimeError("DeployOrchestrator not initialized. Use 'async with' context.")

        await self._preflight()
        candidates = self._select()
        upload = await self._upload(candidates)

        report = DeployReport(
            success=True,
            candidates=candidates,
            upload=upload,
            outputs=build_outputs(candidates, upload),
        )

        reason = self._classify(upload)
        if reason:
            logger.error(reason)
            report.success = False
            report.reason = reason
            return report

        if self._config.async_upload:
            poller = StatusPoller(
                self._api_client,
                max_attempts=self._config.max_attempts,
                delay_seconds=self._config.delay_seconds,
                sleep=self._sleep,
            )
            targets = self._poll_targets(candidates)
            logger.info(f"Waiting for {len(targets)} package(s) to report STARTED")
            report.poll_outcomes = await poller.poll_all(targets)

        return report
