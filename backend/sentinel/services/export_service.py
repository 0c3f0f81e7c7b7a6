"""
Delivery of generated podcast audio to external destinations.
"""

import json
import os
from typing import Dict, Optional

import aiofiles
import httpx

from sentinel.config import Settings, get_settings
from sentinel.schemas.podcast import ExportOption
from sentinel.utils.errors import ExportError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)


class EmailExporter:
    """Sends a link to the audio through the transactional mail API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self.transport = transport

    async def send(self, audio_url: str, email: Optional[str] = None) -> str:
        if not email:
            raise ExportError("An email address is required for email export")
        if not self.settings.mail_api_url:
            raise ExportError("Mail API is not configured")

        message = {
            "from": self.settings.mail_sender,
            "to": [email],
            "subject": "Your KJV Sentinel podcast",
            "text": f"Your podcast is ready. Listen or download here:\n\n{audio_url}\n",
        }
        headers = {"Authorization": f"Bearer {self.settings.mail_api_key}"}

        try:
            async with httpx.AsyncClient(transport=self.transport,
                                         timeout=self.settings.collaborator_timeout_seconds) as client:
                response = await client.post(self.settings.mail_api_url, json=message, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExportError(f"Mail API returned status {e.response.status_code}")
        except httpx.RequestError as e:
            raise ExportError(f"Mail API request failed: {str(e)}")

        logger.info("Podcast emailed", recipient=email)
        return f"Sent to {email}"


class DriveExporter:
    """Uploads the audio file to Google Drive with a multipart upload."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self.transport = transport

    async def send(self, audio_url: str, email: Optional[str] = None) -> str:
        if not self.settings.drive_access_token:
            raise ExportError("Google Drive access is not configured")

        filename = audio_url.rstrip("/").rsplit("/", 1)[-1] or "podcast.wav"
        metadata: Dict[str, object] = {"name": filename}
        if self.settings.drive_folder_id:
            metadata["parents"] = [self.settings.drive_folder_id]

        try:
            async with httpx.AsyncClient(transport=self.transport,
                                         timeout=self.settings.collaborator_timeout_seconds) as client:
                audio = await self._load_audio(client, audio_url, filename)

                response = await client.post(
                    self.settings.drive_upload_url,
                    params={"uploadType": "multipart"},
                    headers={"Authorization": f"Bearer {self.settings.drive_access_token}"},
                    files={
                        "metadata": (None, json.dumps(metadata), "application/json; charset=UTF-8"),
                        "file": (filename, audio, "audio/wav"),
                    },
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExportError(
                f"Drive upload failed with status {e.response.status_code} for {e.request.url}"
            )
        except httpx.RequestError as e:
            raise ExportError(f"Drive upload request failed: {str(e)}")

        file_id = response.json().get("id", "")
        logger.info("Podcast uploaded to Google Drive", file_id=file_id, filename=filename)
        return f"Uploaded as {file_id}" if file_id else "Uploaded"

    async def _load_audio(self, client: httpx.AsyncClient, audio_url: str, filename: str) -> bytes:
        """Read audio this service stored itself from disk; fetch anything else over HTTP."""
        base_url = self.settings.audio_base_url.rstrip("/")
        local_path = os.path.join(self.settings.audio_storage_path, filename)
        if audio_url.startswith(f"{base_url}/") and os.path.isfile(local_path):
            try:
                async with aiofiles.open(local_path, "rb") as f:
                    return await f.read()
            except OSError as e:
                raise ExportError(f"Failed to read stored audio: {str(e)}")

        response = await client.get(audio_url)
        response.raise_for_status()
        return response.content


class ExportService:
    """Dispatches an export to the exporter for its target."""

    def __init__(self, settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        settings = settings or get_settings()
        self.exporters = {
            ExportOption.EMAIL: EmailExporter(settings, transport),
            ExportOption.GOOGLE_DRIVE: DriveExporter(settings, transport),
        }

    async def send(self, audio_url: str, target: ExportOption, email: Optional[str] = None) -> str:
        """
        Deliver the audio to one target.

        Returns:
            Short human-readable description of the delivery

        Raises:
            ExportError: If the delivery fails
        """
        exporter = self.exporters.get(target)
        if exporter is None:
            raise ExportError(f"Unsupported export target: {target}")

        logger.info("Exporting podcast", target=target.value, audio_url=audio_url)
        return await exporter.send(audio_url, email)
