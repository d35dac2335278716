"""Image capabilities used by the converter.

The converter needs three things from the outside world: the format of an
image file, the (optionally resized) bytes of that image, and a base64
encoding of those bytes. ``ImageService`` covers the first two so that the
folding and emission code can be exercised with a test double.
"""

import base64
import io
import re
from abc import ABC, abstractmethod
from pathlib import Path

from PIL import Image, UnidentifiedImageError

# Modes the JPEG encoder accepts as-is
JPEG_MODES = {"1", "L", "RGB", "CMYK"}

# Pillow names camera JPEGs carrying an MPF segment "MPO"; ImageMagick says JPEG
FORMAT_ALIASES = {"MPO": "JPEG"}

IMAGE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError)


class ImageServiceError(Exception):
    """Raised when an image cannot be identified, decoded or re-encoded."""
    pass


def parse_dimensions(value: str) -> tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` geometry string.

    Raises:
        ValueError: If the string is malformed or a side is not > 0
    """
    m = re.fullmatch(r"\s*(\d+)\s*[xX]\s*(\d+)\s*", value)
    if not m:
        raise ValueError(f"invalid size: {value!r} (expected WIDTHxHEIGHT)")
    width = int(m.group(1))
    height = int(m.group(2))
    if width <= 0 or height <= 0:
        raise ValueError(f"invalid size: {value!r} (WIDTH and HEIGHT must be > 0)")
    return (width, height)


def encode_base64(data: bytes) -> str:
    """Return ``data`` as a single-line base64 string."""
    return base64.b64encode(data).decode("ascii")


def fit_size(size: tuple[int, int], box: tuple[int, int]) -> tuple[int, int]:
    """Largest size with the aspect ratio of ``size`` that fits inside ``box``.

    Scales up as well as down, the same way ImageMagick's ``-resize WxH`` does.
    """
    width, height = size
    scale = min(box[0] / width, box[1] / height)
    return (max(1, round(width * scale)), max(1, round(height * scale)))


class ImageService(ABC):
    """Format detection and resizing for image files."""

    @abstractmethod
    def detect_format(self, path: str | Path) -> str:
        """Return the short format tag of an image, e.g. ``JPEG`` or ``GIF``."""

    @abstractmethod
    def resize(self, path: str | Path, box: tuple[int, int]) -> bytes:
        """Return the image resized to fit inside ``box``, in its own format."""

    def read(self, path: str | Path) -> bytes:
        """Return the image file unchanged."""
        return Path(path).read_bytes()


class PillowImageService(ImageService):
    """Image service backed by Pillow."""

    def detect_format(self, path: str | Path) -> str:
        try:
            with Image.open(path) as img:
                fmt = img.format
        except IMAGE_ERRORS as e:
            raise ImageServiceError(f"cannot identify image {path}: {e}")
        if not fmt:
            raise ImageServiceError(f"cannot identify image {path}")
        return FORMAT_ALIASES.get(fmt, fmt)

    def resize(self, path: str | Path, box: tuple[int, int]) -> bytes:
        try:
            with Image.open(path) as img:
                fmt = FORMAT_ALIASES.get(img.format, img.format)
                new_size = fit_size(img.size, box)
                if new_size == img.size:
                    resized = img.copy()
                else:
                    # Use LANCZOS resampling (Pillow falls back to NEAREST for P mode)
                    resized = img.resize(new_size, Image.Resampling.LANCZOS)
        except IMAGE_ERRORS as e:
            raise ImageServiceError(f"cannot read image {path}: {e}")

        if fmt == "JPEG" and resized.mode not in JPEG_MODES:
            resized = resized.convert("RGB")

        buffer = io.BytesIO()
        try:
            resized.save(buffer, format=fmt)
        except (OSError, ValueError, KeyError) as e:
            raise ImageServiceError(f"cannot write {fmt} image for {path}: {e}")
        return buffer.getvalue()
