"""Services for martini_deploy."""
from .api_client import HTTPAPIClient
from .archiver import ArchiveService
from .network import check_host_reachable
from .status_poller import StatusPoller
from .uploader import PackageUploader

__all__ = [
    "HTTPAPIClient",
    "ArchiveService",
    "check_host_reachable",
    "StatusPoller",
    "PackageUploader",
]
