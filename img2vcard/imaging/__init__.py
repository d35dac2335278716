"""Image access - format detection, resizing and base64 encoding."""

from .service import (
    ImageService,
    ImageServiceError,
    PillowImageService,
    encode_base64,
    fit_size,
    parse_dimensions,
)
from .magick import ImageMagickImageService, detect_toolchain

BACKENDS = {
    "pillow": PillowImageService,
    "imagemagick": ImageMagickImageService,
}


def get_image_service(backend: str) -> ImageService:
    """Instantiate the image service registered under ``backend``."""
    try:
        factory = BACKENDS[backend]
    except KeyError:
        raise ImageServiceError(f"unknown backend: {backend!r}")
    return factory()


__all__ = [
    "BACKENDS",
    "ImageMagickImageService",
    "ImageService",
    "ImageServiceError",
    "PillowImageService",
    "detect_toolchain",
    "encode_base64",
    "fit_size",
    "get_image_service",
    "parse_dimensions",
]
