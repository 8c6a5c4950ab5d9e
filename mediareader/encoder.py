from __future__ import annotations

import base64
import logging

from .errors import MediaEncodingError
from .models import FileRef, MediaKind, MediaPayload, MediaReference, UrlRef

logger = logging.getLogger(__name__)


class MediaEncoder:
    """Turns a media reference into the payload descriptor sent to the API."""

    def encode(self, ref: MediaReference) -> MediaPayload:
        if isinstance(ref, FileRef):
            return self._encode_file(ref)
        if isinstance(ref, UrlRef):
            return self._encode_url(ref)
        raise MediaEncodingError(f"Unsupported media reference: {ref!r}")

    @staticmethod
    def _encode_file(ref: FileRef) -> MediaPayload:
        raw = ref.read_bytes()
        encoded = base64.b64encode(raw).decode("ascii")
        kind = MediaKind.for_mime_type(ref.mime_type)
        logger.debug("Encoded %s (%s, %d bytes) as inline %s.", ref.name, ref.mime_type, len(raw), kind.value)
        return MediaPayload(kind=kind, content=encoded, mime_type=ref.mime_type)

    @staticmethod
    def _encode_url(ref: UrlRef) -> MediaPayload:
        url = (ref.url or "").strip()
        if not url:
            raise MediaEncodingError("Empty media URL.")
        # The remote service dereferences the URL; nothing is fetched locally.
        return MediaPayload(kind=MediaKind.for_url(url), content=url)
