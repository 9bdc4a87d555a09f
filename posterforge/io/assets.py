"""
Image assets for PosterForge

Embedded images are stored as data URLs (self-describing encoded blobs).
Decoding goes through Pillow and numpy into a QImage, and is deferred
through AssetDecoder so a pending image only makes its own element inert.
"""

import base64
import binascii
import io
import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError
from PyQt6.QtGui import QImage

from ..core.elements import ImageAsset
from ..core.errors import AssetError

logger = logging.getLogger(__name__)

# Decoded images larger than this on either axis are downscaled
MAX_IMAGE_DIMENSION = 4000


def encode_data_url(data: bytes, mime: str) -> str:
    """Encode raw image bytes as a data URL."""
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(url: str) -> Tuple[bytes, str]:
    """
    Split a data URL into (bytes, mime).

    Raises:
        AssetError: if the URL is not a base64 data URL
    """
    if not isinstance(url, str) or not url.startswith("data:"):
        raise AssetError("Image source is not a data URL")
    header, sep, payload = url.partition(",")
    if not sep or not header.endswith(";base64"):
        raise AssetError("Image data URL is not base64 encoded")
    mime = header[len("data:"):-len(";base64")] or "application/octet-stream"
    try:
        return base64.b64decode(payload, validate=True), mime
    except (binascii.Error, ValueError) as e:
        raise AssetError(f"Invalid base64 image data: {e}") from e


def sniff_mime(data: bytes) -> str:
    """Detect the image MIME type of encoded bytes."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format, "image/png")
    except (UnidentifiedImageError, OSError) as e:
        raise AssetError(f"Unrecognized image data: {e}") from e


def decode_image_bytes(data: bytes) -> QImage:
    """
    Decode encoded image bytes into an RGBA QImage.

    Raises:
        AssetError: if the data cannot be decoded
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
                scale = min(MAX_IMAGE_DIMENSION / width, MAX_IMAGE_DIMENSION / height)
                img = img.resize((int(width * scale), int(height * scale)),
                                 Image.Resampling.LANCZOS)
                logger.info(f"Downscaled image from {width}x{height} to {img.size[0]}x{img.size[1]}")
            rgba = np.ascontiguousarray(np.array(img.convert('RGBA'), dtype=np.uint8))
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetError(f"Could not decode image: {e}") from e

    height, width = rgba.shape[:2]
    qimage = QImage(rgba.tobytes(), width, height, 4 * width, QImage.Format.Format_RGBA8888)
    # copy() detaches from the temporary numpy buffer
    return qimage.copy()


def image_size(data: bytes) -> Tuple[int, int]:
    """Intrinsic (width, height) of encoded image bytes, without a full decode."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise AssetError(f"Unrecognized image data: {e}") from e


class AssetDecoder:
    """
    Cooperative queue of assets waiting to be decoded.

    ``process`` decodes queued assets on the calling thread; the UI drives it
    from a zero-delay QTimer so input handling is never blocked for long.
    ``on_decoded`` is invoked once per batch that made progress, so the
    caller can re-render.
    """

    def __init__(self, on_decoded: Optional[Callable[[], None]] = None):
        self._queue: Deque[ImageAsset] = deque()
        self.on_decoded = on_decoded
        self.failures: List[Tuple[ImageAsset, str]] = []

    @property
    def pending(self) -> int:
        return len(self._queue)

    def submit(self, asset: ImageAsset) -> None:
        if asset.ready or asset.failed or any(queued is asset for queued in self._queue):
            return
        self._queue.append(asset)

    def clear(self) -> None:
        self._queue.clear()

    def process(self, limit: Optional[int] = None) -> int:
        """
        Decode up to ``limit`` queued assets (all when None).

        Returns:
            Number of assets that finished decoding
        """
        decoded = 0
        handled = 0
        while self._queue and (limit is None or handled < limit):
            asset = self._queue.popleft()
            handled += 1
            try:
                asset.image = decode_image_bytes(asset.data)
                decoded += 1
            except AssetError as e:
                # Element stays inert; the rest of the document is unaffected
                asset.failed = True
                self.failures.append((asset, str(e)))
                logger.warning(f"Image decode failed: {e}")
        if decoded and self.on_decoded is not None:
            self.on_decoded()
        return decoded
