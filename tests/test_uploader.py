"""Tests for the package uploader."""
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from martini_deploy.errors import UploadError
from martini_deploy.models import UploadOutcome, UploadRecord
from martini_deploy.services.api_client import HTTPAPIClient
from martini_deploy.services.uploader import UPLOAD_ENDPOINT, PackageUploader


def _client(response):
    client = Mock()
    client.post_file = AsyncMock(return_value=response)
    return client


class TestPackageUploader:
    @pytest.mark.asyncio
    async def test_sync_success_parses_records(self):
        body = [
            {"name": "a", "id": "1", "status": "STARTED", "version": "3"},
            {"name": "c", "id": "2", "status": "STARTED", "version": "1"},
        ]
        client = _client(httpx.Response(200, json=body))

        result = await PackageUploader(client).upload(Path("packages.zip"))

        assert result.outcome == UploadOutcome.SYNC
        assert result.records == (
            UploadRecord("a", "1", "STARTED", "3"),
            UploadRecord("c", "2", "STARTED", "1"),
        )
        client.post_file.assert_awaited_once_with(
            UPLOAD_ENDPOINT,
            Path("packages.zip"),
            field="file",
            params={"stateOnCreate": "STARTED", "replaceExisting": "true"},
        )

    @pytest.mark.asyncio
    async def test_gateway_timeout_is_accepted(self):
        client = _client(httpx.Response(504, text="<html>Gateway Timeout</html>"))

        result = await PackageUploader(client).upload(Path("packages.zip"))

        assert result.outcome == UploadOutcome.ACCEPTED
        assert result.http_status == 504
        assert result.records == ()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ['[{"name": "a"}]', "oops", '{"error": "boom"}'])
    async def test_server_error_fails_regardless_of_body(self, body):
        client = _client(httpx.Response(500, text=body))

        with pytest.raises(UploadError) as exc_info:
            await PackageUploader(client).upload(Path("packages.zip"))

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == body

    @pytest.mark.asyncio
    async def test_non_array_body_is_rejected(self):
        client = _client(httpx.Response(200, json={"name": "a"}))

        with pytest.raises(UploadError, match="unexpected response shape"):
            await PackageUploader(client).upload(Path("packages.zip"))

    @pytest.mark.asyncio
    async def test_non_json_body_is_rejected(self):
        client = _client(httpx.Response(200, text="done"))

        with pytest.raises(UploadError, match="unexpected response shape"):
            await PackageUploader(client).upload(Path("packages.zip"))

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        client = Mock()
        client.post_file = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(UploadError, match="upload request failed"):
            await PackageUploader(client).upload(Path("packages.zip"))

    def test_parse_records_rejects_non_object_items(self):
        with pytest.raises(UploadError, match="array item is not an object"):
            PackageUploader.parse_records('["a"]')

    @pytest.mark.asyncio
    async def test_read_timeout_posts_once(self, tmp_path):
        artifact = tmp_path / "packages.zip"
        artifact.write_bytes(b"PK")
        posts = []

        def handler(request: httpx.Request) -> httpx.Response:
            posts.append(request)
            raise httpx.ReadTimeout("server still deploying", request=request)

        client = HTTPAPIClient("https://m.example.com", "tok", transport=httpx.MockTransport(handler))
        async with client:
            with pytest.raises(UploadError, match="upload request failed"):
                await PackageUploader(client).upload(artifact)

        assert len(posts) == 1
