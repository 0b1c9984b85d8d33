"""
Google Drive API Connector
Finds a thumbnail for a product from its Drive photo folder

Requires GOOGLE_API_KEY with the Drive API enabled. The folder must be
shared publicly (anyone with the link).
"""
import logging
import os
from typing import Optional

import httpx

from pim.domain.media import DRIVE_THUMBNAIL, extract_folder_id

logger = logging.getLogger(__name__)


class GoogleDriveConnector:
    """
    Connector for the Google Drive v3 files API

    Handles:
    - Listing images inside a shared folder
    - Building thumbnail URLs for them
    """

    BASE_URL = "https://www.googleapis.com/drive/v3"

    def __init__(self, api_key: str = None, timeout: float = 5.0):
        self.api_key = api_key or os.getenv('GOOGLE_API_KEY')
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def first_image_thumbnail(self, folder_url: str) -> Optional[str]:
        """
        Thumbnail URL of the first image (by name) in a Drive folder

        Returns:
            Thumbnail URL, or None if the key is missing, the URL is not a
            folder, the folder has no images or the API call fails
        """
        folder_id = extract_folder_id(folder_url)
        if not folder_id or not self.api_key:
            return None

        params = {
            'q': f"'{folder_id}' in parents and mimeType contains 'image/' and trashed=false",
            'key': self.api_key,
            'fields': 'files(id,name)',
            'pageSize': 1,
            'orderBy': 'name',
        }

        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(f"{self.BASE_URL}/files", params=params, timeout=self.timeout)
                response.raise_for_status()
                files = response.json().get('files') or []
            except httpx.HTTPStatusError as e:
                logger.warning(f"Drive API error for folder {folder_id}: {e.response.status_code}")
                return None
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Drive API request failed for folder {folder_id}: {e}")
                return None

        if not files:
            return None

        return DRIVE_THUMBNAIL.format(file_id=files[0]['id'])
