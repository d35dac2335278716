"""Command-line interface: convert images to vCard PHOTO properties."""

import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from tqdm import tqdm

from .config import ConfigError, load_config
from .core.models import ConversionConfig, PropertyLine
from .imaging import (
    BACKENDS,
    ImageService,
    ImageServiceError,
    encode_base64,
    get_image_service,
    parse_dimensions,
)

PROG = "img2vcard"

DESCRIPTION = """\
By default each image is resized to fit into a 96x96 square without cropping
(the size Gmail uses), base64 encoded, wrapped in a vCard 3.0 PHOTO
property and folded per RFC 2426. Lines end with CRLF as the vCard standard
requires; a blank line separates consecutive images.
"""

# Exit codes from sysexits.h
EX_OK = 0
EX_UNKNOWN = 1
EX_USAGE = 64

EXAMPLES = """\
examples:
  img2vcard *.jpg
      Output vCard PHOTO properties for all the images in 96x96 format.

  img2vcard -R jdoe.gif
      Convert jdoe.gif without resizing it.

environment variables:
  IMG2VCARD_CONFIG, IMG2VCARD_RESIZE, IMG2VCARD_BACKEND, IMG2VCARD_VERBOSE
"""

RED = "\033[31m"
RESET = "\033[0m"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with EX_USAGE instead of 2."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, f"{self.prog}: error: {message}\n")


def _geometry(value: str) -> tuple[int, int]:
    try:
        return parse_dimensions(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def warning(message: str) -> None:
    """Print a warning to stderr, in red on a terminal."""
    if sys.stderr.isatty():
        message = f"{RED}{message}{RESET}"
    tqdm.write(message, file=sys.stderr)


def verbose(config: ConversionConfig, message: str) -> None:
    if config.verbose:
        tqdm.write(message, file=sys.stderr)


def is_readable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog=PROG,
        description=DESCRIPTION,
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("paths", nargs="+", metavar="PATH", help="Image files to convert")
    parser.add_argument(
        "--resize", "-r",
        dest="dimensions",
        type=_geometry,
        metavar="WIDTHxHEIGHT",
        help="Resize to WIDTH by HEIGHT pixels instead of the default 96x96",
    )
    parser.add_argument(
        "--no-resize", "-R",
        dest="dimensions",
        action="store_const",
        const=False,
        help="Don't resize images",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=None,
        help="Print progress messages to stderr",
    )
    parser.add_argument(
        "--config", "-c",
        metavar="FILE",
        help="YAML configuration file (default: $IMG2VCARD_CONFIG)",
    )
    parser.add_argument(
        "--backend", "-b",
        choices=sorted(BACKENDS),
        help="Image backend (default: pillow)",
    )
    return parser


def build_config(args: argparse.Namespace) -> ConversionConfig:
    """Merge command-line flags over file and environment settings."""
    config = load_config(args.config)
    changes = {}
    if args.dimensions is False:
        changes["dimensions"] = None
    elif args.dimensions is not None:
        changes["dimensions"] = args.dimensions
    if args.verbose is not None:
        changes["verbose"] = args.verbose
    if args.backend is not None:
        changes["backend"] = args.backend
    return replace(config, **changes)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

def convert_file(path: Path, config: ConversionConfig, service: ImageService) -> PropertyLine:
    """Build the PHOTO property for a single image file."""
    image_format = service.detect_format(path)
    if config.resize:
        verbose(config, f"Resizing to {config.geometry}")
        data = service.resize(path, config.dimensions)
    else:
        data = service.read(path)
    return PropertyLine.photo(image_format, encode_base64(data))


def convert_paths(
    paths: list[str],
    config: ConversionConfig,
    service: ImageService,
    out=None,
) -> int:
    """Convert each path in order, writing folded properties to ``out``.

    Missing or unreadable files are reported and skipped.

    Returns:
        Number of images written
    """
    out = out if out is not None else sys.stdout.buffer
    written = 0

    for name in tqdm(paths, desc="Converting", unit="file", file=sys.stderr, disable=not config.verbose):
        verbose(config, f"Processing {name}")
        path = Path(name)
        if not is_readable_file(path):
            warning(f"{PROG}: cannot access {name}: No such file")
            continue

        prop = convert_file(path, config, service)
        out.writelines(prop.fold())
        out.write(b"\n")
        out.flush()
        written += 1

    return written


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None, service: Optional[ImageService] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigError as e:
        parser.error(str(e))

    try:
        if service is None:
            service = get_image_service(config.backend)
        convert_paths(args.paths, config, service)
    except (ImageServiceError, OSError) as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return EX_UNKNOWN
    except Exception as e:
        print(f"{PROG}: unexpected error: {e}", file=sys.stderr)
        return EX_UNKNOWN

    return EX_OK


if __name__ == "__main__":
    sys.exit(main())
