import base64
import shutil
import subprocess

import pytest
from PIL import Image

from img2vcard.imaging import (
    ImageMagickImageService,
    ImageServiceError,
    PillowImageService,
    encode_base64,
    fit_size,
    get_image_service,
    parse_dimensions,
)
from img2vcard.imaging import magick
from img2vcard.imaging.magick import Toolchain

from conftest import open_bytes, write_image

has_imagemagick = bool(shutil.which("magick") or (shutil.which("convert") and shutil.which("identify")))


@pytest.mark.parametrize(
    "value,expected",
    [("96x96", (96, 96)), ("640x480", (640, 480)), (" 10 X 20 ", (10, 20))],
)
def test_parse_dimensions(value, expected):
    assert parse_dimensions(value) == expected


@pytest.mark.parametrize("value", ["96", "x96", "96x", "0x96", "96x0", "-1x5", "axb", ""])
def test_parse_dimensions_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_dimensions(value)


@pytest.mark.parametrize(
    "size,box,expected",
    [
        ((200, 100), (96, 96), (96, 48)),
        ((100, 200), (96, 96), (48, 96)),
        ((50, 80), (96, 96), (60, 96)),
        ((96, 96), (96, 96), (96, 96)),
        ((1000, 1), (96, 96), (96, 1)),
    ],
)
def test_fit_size(size, box, expected):
    assert fit_size(size, box) == expected


def test_encode_base64_is_single_line():
    data = bytes(range(256)) * 10
    encoded = encode_base64(data)
    assert "\n" not in encoded
    assert base64.b64decode(encoded) == data


def test_pillow_detect_format(png_file, jpeg_file):
    service = PillowImageService()
    assert service.detect_format(png_file) == "PNG"
    assert service.detect_format(jpeg_file) == "JPEG"


def test_pillow_resize_fits_box_and_keeps_format(png_file):
    data = PillowImageService().resize(png_file, (96, 96))
    img = open_bytes(data)
    assert img.format == "PNG"
    assert img.size == (96, 48)


def test_pillow_resize_scales_small_images_up(jpeg_file):
    img = open_bytes(PillowImageService().resize(jpeg_file, (96, 96)))
    assert img.format == "JPEG"
    assert img.size == (60, 96)


def test_pillow_resize_palette_gif(tmp_path):
    gif = write_image(tmp_path / "icon.gif", size=(40, 20), fmt="GIF", mode="P")
    img = open_bytes(PillowImageService().resize(gif, (96, 96)))
    assert img.format == "GIF"
    assert img.size == (96, 48)


def test_read_returns_file_unchanged(png_file):
    assert PillowImageService().read(png_file) == png_file.read_bytes()


def test_pillow_rejects_non_image(tmp_path):
    bogus = tmp_path / "notes.txt"
    bogus.write_text("not an image")
    service = PillowImageService()
    with pytest.raises(ImageServiceError):
        service.detect_format(bogus)
    with pytest.raises(ImageServiceError):
        service.resize(bogus, (96, 96))


def test_get_image_service():
    assert isinstance(get_image_service("pillow"), PillowImageService)
    with pytest.raises(ImageServiceError):
        get_image_service("gimp")


@pytest.mark.skipif(not has_imagemagick, reason="ImageMagick not installed")
def test_imagemagick_detect_and_resize(png_file):
    service = ImageMagickImageService()
    assert service.detect_format(png_file) == "PNG"
    img = open_bytes(service.resize(png_file, (96, 96)))
    assert img.size == (96, 48)


@pytest.mark.skipif(not has_imagemagick, reason="ImageMagick not installed")
def test_imagemagick_rejects_non_image(tmp_path):
    bogus = tmp_path / "notes.txt"
    bogus.write_text("not an image")
    with pytest.raises(ImageServiceError):
        ImageMagickImageService().detect_format(bogus)


def test_pillow_reports_mpo_as_jpeg(tmp_path):
    path = tmp_path / "camera.jpg"
    first = Image.new("RGB", (40, 20), "red")
    first.save(path, format="MPO", save_all=True, append_images=[Image.new("RGB", (40, 20), "blue")])
    with Image.open(path) as img:
        assert img.format == "MPO"

    service = PillowImageService()
    assert service.detect_format(path) == "JPEG"
    assert open_bytes(service.resize(path, (96, 96))).format == "JPEG"


def test_pillow_wraps_decompression_bomb(png_file, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    service = PillowImageService()
    with pytest.raises(ImageServiceError):
        service.detect_format(png_file)
    with pytest.raises(ImageServiceError):
        service.resize(png_file, (96, 96))


def test_imagemagick_guards_dash_prefixed_paths(monkeypatch):
    calls = []

    def fake_run(cmd, capture_output):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout=b"PNG\n", stderr=b"")

    monkeypatch.setattr(magick.subprocess, "run", fake_run)
    service = ImageMagickImageService(Toolchain(convert=["convert"], identify=["identify"]))
    service.resize("-weird.png", (96, 96))
    service.resize("/abs/-ok.png", (96, 96))
    assert calls[0] == ["convert", "-resize", "96x96", "./-weird.png", ":-"]
    assert calls[1][3] == "/abs/-ok.png"
