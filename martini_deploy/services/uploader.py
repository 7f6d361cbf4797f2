"""
Package Uploader - Single Responsibility: submit the artifact.

Classification of the server answer:
- 2xx: deployed synchronously, body must be a JSON array of package records
- 504: gateway timed out while the server keeps deploying (accepted)
- anything else: rejected
"""
import json
import logging
from pathlib import Path
from typing import Dict

import httpx

from ..errors import UploadError
from ..models import UploadOutcome, UploadRecord, UploadResult
from ..protocols import ITransport

logger = logging.getLogger(__name__)

UPLOAD_ENDPOINT = "/esbapi/packages/upload"
UPLOAD_PARAMS: Dict[str, str] = {"stateOnCreate": "STARTED", "replaceExisting": "true"}


class PackageUploader:
    """Uploads an artifact and parses the per-package records."""

    def __init__(self, api_client: ITransport):
        self._api = api_client

    @staticmethod
    def parse_records(body: str):
        """Parse the response body into UploadRecords; reject anything but an array."""
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise UploadError("unexpected response shape: body is not JSON", body=body) from exc

        if not isinstance(payload, list):
            raise UploadError("unexpected response shape: expected a JSON array", body=body)

        records = []
        for item in payload:
            if not isinstance(item, dict):
                raise UploadError("unexpected response shape: array item is not an object", body=body)
            records.append(UploadRecord.from_json(item))
        return tuple(records)

    async def upload(self, artifact: Path) -> UploadResult:
        """
        Upload the artifact.

        Args:
            artifact: Path to the zip file

        Returns:
            UploadResult with outcome SYNC (records parsed) or ACCEPTED (no records)

        Raises:
            UploadError: on any other status, a malformed 2xx body, or a transport failure
        """
        logger.info(f"Uploading {Path(artifact).name}")
        try:
            response = await self._api.post_file(
                UPLOAD_ENDPOINT, Path(artifact), field="file", params=dict(UPLOAD_PARAMS)
            )
        except httpx.RequestError as exc:
            raise UploadError(f"upload request failed: {exc}") from exc

        status = response.status_code
        body = response.text
        result = UploadResult(http_status=status, body=body)

        if result.outcome == UploadOutcome.ACCEPTED:
            logger.warning(
                f"Upload returned {status}; deployment continues on the server"
            )
            return result

        if result.outcome == UploadOutcome.FAILED:
            raise UploadError(f"upload rejected with HTTP {status}", status_code=status, body=body)

        records = self.parse_records(body)
        logger.info(f"Upload succeeded with HTTP {status}: {len(records)} package(s) reported")
        return UploadResult(http_status=status, records=records, body=body)
