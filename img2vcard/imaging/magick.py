"""Image service that shells out to ImageMagick."""

import dataclasses
import shutil
import subprocess
from pathlib import Path

from .service import ImageService, ImageServiceError


@dataclasses.dataclass(frozen=True)
class Toolchain:
    convert: list[str]
    identify: list[str]


def detect_toolchain() -> Toolchain:
    """Locate ImageMagick, preferring the v7 ``magick`` front end."""
    magick = shutil.which("magick")
    if magick:
        return Toolchain(convert=[magick], identify=[magick, "identify"])

    convert = shutil.which("convert")
    identify = shutil.which("identify")
    if convert and identify:
        return Toolchain(convert=[convert], identify=[identify])

    raise ImageServiceError("missing ImageMagick (need `magick` or both `convert` + `identify`)")


def _path_arg(path: str | Path) -> str:
    """Keep a path from being parsed as an option."""
    text = str(path)
    if text.startswith("-"):
        return "./" + text
    return text


class ImageMagickImageService(ImageService):
    """Runs ``identify`` and ``convert`` as subprocesses."""

    def __init__(self, toolchain: Toolchain | None = None):
        self.toolchain = toolchain or detect_toolchain()

    def _run(self, cmd: list[str]) -> bytes:
        try:
            proc = subprocess.run(cmd, capture_output=True)
        except OSError as e:
            raise ImageServiceError(f"cannot run {cmd[0]}: {e}")
        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", "replace").strip()
            raise ImageServiceError(f"{Path(cmd[0]).name} failed ({proc.returncode}): {stderr}")
        return proc.stdout

    def detect_format(self, path: str | Path) -> str:
        cmd = self.toolchain.identify + ["-ping", "-format", "%m\n", "--", str(path)]
        raw = self._run(cmd).decode("ascii", "replace").strip()
        if not raw:
            raise ImageServiceError(f"cannot identify image {path}")
        # Multi-frame images print one record per frame
        return raw.splitlines()[0].strip()

    def resize(self, path: str | Path, box: tuple[int, int]) -> bytes:
        geometry = f"{box[0]}x{box[1]}"
        # ":-" writes to stdout in the input format
        return self._run(self.toolchain.convert + ["-resize", geometry, _path_arg(path), ":-"])
