"""img2vcard - Convert images to vCard 3.0 PHOTO properties.

Package structure:
    img2vcard/
    ├── cli.py              # Command-line interface
    ├── config.py           # YAML / environment configuration
    ├── core/               # Core logic
    │   ├── folding.py      # RFC 2426 line folding
    │   └── models.py       # PropertyLine, ConversionConfig
    └── imaging/            # Image access
        ├── service.py      # ImageService, Pillow backend, base64
        └── magick.py       # ImageMagick backend
"""

from .core.folding import fold, unfold
from .core.models import ConversionConfig, PropertyLine
from .config import ConfigError, load_config
from .imaging import (
    ImageMagickImageService,
    ImageService,
    ImageServiceError,
    PillowImageService,
    encode_base64,
    get_image_service,
    parse_dimensions,
)

__version__ = "1.0.0"

__all__ = [
    # Core
    "ConversionConfig",
    "PropertyLine",
    "fold",
    "unfold",
    # Configuration
    "ConfigError",
    "load_config",
    # Imaging
    "ImageMagickImageService",
    "ImageService",
    "ImageServiceError",
    "PillowImageService",
    "encode_base64",
    "get_image_service",
    "parse_dimensions",
]
