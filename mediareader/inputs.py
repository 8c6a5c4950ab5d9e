from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

from .constants import LARGE_FILE_WARNING_BYTES
from .models import FileRef, MediaReference, UrlRef

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def parse_url_text(text: str) -> List[str]:
    """Split pasted text into URLs on any whitespace, dropping blanks."""
    return [part for part in _WHITESPACE_RE.split(text or "") if part.strip()]


def read_url_file(path: Path) -> List[str]:
    return parse_url_text(Path(path).expanduser().read_text(encoding="utf-8"))


def collect_media(
    paths: Optional[Iterable[Path]] = None,
    urls: Optional[Iterable[str]] = None,
) -> List[MediaReference]:
    """Files first, then URLs, each group in the order given."""
    media: List[MediaReference] = []
    for raw_path in paths or []:
        path = Path(raw_path).expanduser()
        if not path.is_file():
            raise FileNotFoundError(f"Media file not found: {path}")
        size = path.stat().st_size
        if size > LARGE_FILE_WARNING_BYTES:
            logger.warning(
                "%s is %.1f MB; the API may reject files over %d MB.",
                path.name,
                size / (1024 * 1024),
                LARGE_FILE_WARNING_BYTES // (1024 * 1024),
            )
        media.append(FileRef.from_path(path))
    for url in urls or []:
        normalized = (url or "").strip()
        if normalized:
            media.append(UrlRef(normalized))
    return media
