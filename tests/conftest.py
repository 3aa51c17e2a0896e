"""测试配置文件。

提供测试所需的fixtures：内存中生成的图片字节、上传文件与压缩请求。
"""

from collections.abc import Callable
from io import BytesIO

import pytest
from PIL import Image, ImageDraw

from py_image_compress_api.config import AppConfig
from py_image_compress_api.models import (
    CompressionMode,
    CompressionRequest,
    ImageFormat,
    ImageMetadata,
    UploadedFile,
)


def _draw_pattern(img: Image.Image) -> None:
    """画一些色块，让编码结果不至于过于简单"""
    draw = ImageDraw.Draw(img)
    width, height = img.size
    for i in range(20):
        x, y = (i * 37) % width, (i * 23) % height
        color = (i * 13 % 256, i * 29 % 256, i * 47 % 256)
        if img.mode == "RGBA":
            draw.rectangle([x, y, x + width // 5, y + height // 5], fill=(*color, 200))
        else:
            draw.rectangle([x, y, x + width // 5, y + height // 5], fill=color)


@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """生成图片字节的工厂"""

    def factory(
        mode: str = "RGB",
        size: tuple[int, int] = (120, 80),
        fmt: str = "PNG",
        **save_kwargs,
    ) -> bytes:
        background = (0, 0, 0, 0) if mode == "RGBA" else "white"
        img = Image.new(mode, size, color=background)
        _draw_pattern(img)
        buffer = BytesIO()
        img.save(buffer, format=fmt, **save_kwargs)
        return buffer.getvalue()

    return factory


@pytest.fixture
def png_bytes(make_image_bytes) -> bytes:
    """不透明 PNG"""
    return make_image_bytes("RGB", (120, 80), "PNG")


@pytest.fixture
def png_alpha_bytes(make_image_bytes) -> bytes:
    """透明 PNG"""
    return make_image_bytes("RGBA", (120, 80), "PNG")


@pytest.fixture
def jpeg_bytes(make_image_bytes) -> bytes:
    """JPEG 照片"""
    return make_image_bytes("RGB", (160, 120), "JPEG", quality=95)


@pytest.fixture
def make_color_key_png() -> Callable[..., bytes]:
    """RGB PNG，用 tRNS 把黑色标记为透明；左半边黑色，右半边红色"""

    def factory(size: tuple[int, int] = (64, 64)) -> bytes:
        width, height = size
        img = Image.new("RGB", size, color=(0, 0, 0))
        ImageDraw.Draw(img).rectangle([width // 2, 0, width, height], fill=(255, 0, 0))
        buffer = BytesIO()
        img.save(buffer, format="PNG", transparency=(0, 0, 0))
        return buffer.getvalue()

    return factory


@pytest.fixture
def svg_bytes() -> bytes:
    return b'<?xml version="1.0"?><svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"/>'


@pytest.fixture
def make_upload() -> Callable[..., UploadedFile]:
    """上传文件工厂"""

    def factory(
        name: str,
        data: bytes = b"",
        content_type: str | None = "image/png",
        size: int | None = None,
    ) -> UploadedFile:
        return UploadedFile(name=name, data=data, content_type=content_type, size=size)

    return factory


@pytest.fixture
def make_metadata() -> Callable[..., ImageMetadata]:
    """图片元数据工厂"""

    def factory(
        format: ImageFormat = ImageFormat.PNG,
        width: int = 800,
        height: int = 600,
        has_alpha: bool = False,
    ) -> ImageMetadata:
        return ImageMetadata(
            format=format,
            width=width,
            height=height,
            has_alpha=has_alpha,
            mode="RGBA" if has_alpha else "RGB",
        )

    return factory


@pytest.fixture
def lossy_request() -> CompressionRequest:
    return CompressionRequest(quality=80, mode=CompressionMode.LOSSY)


@pytest.fixture
def app_config(monkeypatch) -> AppConfig:
    """测试用配置：较小的单文件上限，便于构造超限文件"""
    monkeypatch.setenv("PIC_MAX_FILE_SIZE_BYTES", str(512 * 1024))
    monkeypatch.setenv("PIC_MAX_WORKERS", "2")
    return AppConfig()
