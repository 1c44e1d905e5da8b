"""
Upload Gateway: push a user file to fal storage.

The caller is expected to have checked the MIME type; this gateway only checks
that a file was supplied and that the credential is configured.
"""

import logging
from typing import Optional

from ..config import FalConfig
from ..errors import ConfigurationError, MissingInput, UpstreamFailure
from ..fal import FalClient

logger = logging.getLogger(__name__)


class UploadGateway:

    def __init__(self, config: FalConfig, client: Optional[FalClient] = None):
        self.config = config
        self.client = client or FalClient(config)

    async def upload(
        self,
        content: Optional[bytes],
        content_type: str = "application/octet-stream",
        file_name: str = "upload",
    ) -> str:
        """
        Store the file with the provider.

        Returns:
            Public URL of the stored file.
        """
        if content is None:
            raise MissingInput("No file provided")
        if not self.config.has_key:
            raise ConfigurationError()

        try:
            url = await self.client.upload(content, content_type, file_name)
        except Exception as e:
            logger.error(f"Upload failed for {file_name}: {e}")
            raise UpstreamFailure("Failed to upload file") from e

        if not url:
            raise UpstreamFailure("Failed to upload file")
        return url
