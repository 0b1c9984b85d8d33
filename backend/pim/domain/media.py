"""
Media link and formatting helpers for product records
"""
import re
from typing import Optional

from pim.domain.gtin import digits_only

DRIVE_THUMBNAIL = "https://drive.google.com/thumbnail?id={file_id}&sz=w400"

_DRIVE_FILE = re.compile(r"/file/d/([a-zA-Z0-9_-]+)")
_DRIVE_ID_PARAM = re.compile(r"[?&]id=([a-zA-Z0-9_-]+)")
_DRIVE_FOLDER = re.compile(r"/folders/([a-zA-Z0-9_-]+)")


def drive_url_to_thumbnail(url: Optional[str]) -> Optional[str]:
    """
    Turn a Google Drive link into a thumbnail URL

    Supports:
        https://drive.google.com/file/d/FILE_ID/view
        https://drive.google.com/open?id=FILE_ID
        https://drive.google.com/uc?export=view&id=FILE_ID
        direct googleusercontent.com image links (returned as-is)

    Any other non-Drive http(s) URL is returned unchanged.
    """
    if not url or not url.strip():
        return None
    url = url.strip()

    match = _DRIVE_FILE.search(url) or _DRIVE_ID_PARAM.search(url)
    if match:
        return DRIVE_THUMBNAIL.format(file_id=match.group(1))
    if "googleusercontent.com" in url:
        return url
    if "drive.google.com" in url:
        return None
    if url.startswith(("http://", "https://")):
        return url
    return None


def extract_folder_id(url: Optional[str]) -> Optional[str]:
    """Folder ID from a Drive folder URL"""
    if not url:
        return None
    match = _DRIVE_FOLDER.search(url)
    return match.group(1) if match else None


def format_ncm(ncm: Optional[str]) -> str:
    """Format an 8-digit NCM as 0000.00.00; other values unchanged, blank as '—'"""
    if not ncm or not ncm.strip():
        return "—"
    digits = digits_only(ncm)
    if len(digits) == 8:
        return f"{digits[:4]}.{digits[4:6]}.{digits[6:8]}"
    return ncm
