"""
Tests for the synthesis and export HTTP collaborators.
"""

import json
import os
from typing import Any, List

import httpx
import pytest

from sentinel.schemas.podcast import ExportOption, TreatmentType
from sentinel.services.export_service import ExportService
from sentinel.services.synthesis_service import SynthesisService
from sentinel.utils.errors import ExportError, SynthesisError


class TestSynthesisService:
    """Test the SynthesisService class."""

    @pytest.mark.asyncio
    async def test_synthesize_stores_audio(self, test_settings: Any) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, content=b"RIFF....WAVE")

        service = SynthesisService(test_settings, transport=httpx.MockTransport(handler))

        audio_url = await service.synthesize("Church History: ...", TreatmentType.DEEP)

        assert audio_url.startswith(f"{test_settings.audio_base_url}/podcast-")
        assert audio_url.endswith(".wav")
        filename = audio_url.rsplit("/", 1)[-1]
        with open(os.path.join(test_settings.audio_storage_path, filename), "rb") as f:
            assert f.read() == b"RIFF....WAVE"

        assert str(requests[0].url) == "http://tts.test/tts"
        body = json.loads(requests[0].content)
        assert body["text"] == "Church History: ..."
        assert body["treatment"] == "Deep"
        assert body["speaker"] == test_settings.tts_speaker

    @pytest.mark.asyncio
    async def test_server_error(self, test_settings: Any) -> None:
        service = SynthesisService(test_settings,
                                   transport=httpx.MockTransport(lambda r: httpx.Response(500)))

        with pytest.raises(SynthesisError, match="status 500"):
            await service.synthesize("text", TreatmentType.GENERAL_OVERVIEW)

    @pytest.mark.asyncio
    async def test_empty_audio(self, test_settings: Any) -> None:
        service = SynthesisService(test_settings,
                                   transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b"")))

        with pytest.raises(SynthesisError, match="no audio"):
            await service.synthesize("text", TreatmentType.GENERAL_OVERVIEW)

    @pytest.mark.asyncio
    async def test_connection_error(self, test_settings: Any) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        service = SynthesisService(test_settings, transport=httpx.MockTransport(handler))

        with pytest.raises(SynthesisError, match="connection refused"):
            await service.synthesize("text", TreatmentType.GENERAL_OVERVIEW)

    @pytest.mark.asyncio
    async def test_empty_text(self, test_settings: Any) -> None:
        with pytest.raises(SynthesisError, match="empty text"):
            await SynthesisService(test_settings).synthesize("  ", TreatmentType.GENERAL_OVERVIEW)


class TestExportService:
    """Test the ExportService class and its exporters."""

    AUDIO_URL = "http://testserver/media/podcasts/podcast-1.wav"

    @pytest.mark.asyncio
    async def test_email_export(self, test_settings: Any) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202, json={"id": "msg-1"})

        service = ExportService(test_settings, transport=httpx.MockTransport(handler))

        outcome = await service.send(self.AUDIO_URL, ExportOption.EMAIL, "user@example.com")

        assert outcome == "Sent to user@example.com"
        assert str(requests[0].url) == test_settings.mail_api_url
        assert requests[0].headers["Authorization"] == f"Bearer {test_settings.mail_api_key}"
        body = json.loads(requests[0].content)
        assert body["to"] == ["user@example.com"]
        assert self.AUDIO_URL in body["text"]

    @pytest.mark.asyncio
    async def test_email_export_requires_address(self, test_settings: Any) -> None:
        service = ExportService(test_settings, transport=httpx.MockTransport(lambda r: httpx.Response(202)))

        with pytest.raises(ExportError, match="email address is required"):
            await service.send(self.AUDIO_URL, ExportOption.EMAIL)

    @pytest.mark.asyncio
    async def test_email_export_api_error(self, test_settings: Any) -> None:
        service = ExportService(test_settings, transport=httpx.MockTransport(lambda r: httpx.Response(503)))

        with pytest.raises(ExportError, match="status 503"):
            await service.send(self.AUDIO_URL, ExportOption.EMAIL, "user@example.com")

    @pytest.mark.asyncio
    async def test_drive_export(self, test_settings: Any) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.method == "GET":
                return httpx.Response(200, content=b"audio-bytes")
            return httpx.Response(200, json={"id": "drive-file-1"})

        service = ExportService(test_settings, transport=httpx.MockTransport(handler))

        outcome = await service.send(self.AUDIO_URL, ExportOption.GOOGLE_DRIVE)

        assert outcome == "Uploaded as drive-file-1"
        download, upload = requests
        assert str(download.url) == self.AUDIO_URL
        assert upload.url.params["uploadType"] == "multipart"
        assert upload.headers["Authorization"] == f"Bearer {test_settings.drive_access_token}"
        assert b"podcast-1.wav" in upload.content
        assert b"audio-bytes" in upload.content

    @pytest.mark.asyncio
    async def test_drive_export_reads_stored_audio(self, test_settings: Any) -> None:
        filename = "podcast-stored-drive.wav"
        with open(os.path.join(test_settings.audio_storage_path, filename), "wb") as f:
            f.write(b"stored-audio-bytes")
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "drive-file-2"})

        service = ExportService(test_settings, transport=httpx.MockTransport(handler))

        outcome = await service.send(f"{test_settings.audio_base_url}/{filename}", ExportOption.GOOGLE_DRIVE)

        assert outcome == "Uploaded as drive-file-2"
        assert [r.method for r in requests] == ["POST"]
        assert b"stored-audio-bytes" in requests[0].content

    @pytest.mark.asyncio
    async def test_drive_export_audio_unavailable(self, test_settings: Any) -> None:
        service = ExportService(test_settings, transport=httpx.MockTransport(lambda r: httpx.Response(404)))

        with pytest.raises(ExportError, match="status 404"):
            await service.send(self.AUDIO_URL, ExportOption.GOOGLE_DRIVE)
