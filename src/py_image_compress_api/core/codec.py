"""Pillow 编解码适配器。

把像素级操作限制在这一层：探测、解码、缩放与三种输出格式的编码。
"""

from io import BytesIO

from PIL import Image, ImageOps
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import EncodeError, handle_image_errors
from ..models.compression_config import (
    EncodingPlan,
    JpegParams,
    PngParams,
    ResizeBounds,
    WebpParams,
)
from ..models.constants import ImageFormats, OutputFormat
from ..models.image_metadata import ImageMetadata
from ..utils.logging_helpers import get_logger
from .formats import FormatProcessor, get_save_parameters
from .image_info import ImageInfoExtractor


logger = get_logger()


class EncodedImage(BaseModel):
    """编码结果"""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False, description="编码后的字节")
    format: OutputFormat = Field(description="输出格式")
    original_dimensions: tuple[int, int] = Field(description="原始尺寸")
    final_dimensions: tuple[int, int] = Field(description="最终尺寸")
    was_resized: bool = Field(False, description="是否调整了尺寸")

    @property
    def size(self) -> int:
        return len(self.data)


class PillowCodec:
    """基于 Pillow 的编解码器

    实例不持有可变状态，可以在线程池中共享。
    """

    def __init__(
        self,
        info_extractor: ImageInfoExtractor | None = None,
        format_processor: FormatProcessor | None = None,
    ) -> None:
        self.info_extractor = info_extractor or ImageInfoExtractor()
        self.format_processor = format_processor or FormatProcessor()

    def probe(self, data: bytes) -> ImageMetadata:
        """探测图片元数据"""
        return self.info_extractor.probe(data)

    def resize(
        self, img: Image.Image, bounds: ResizeBounds | None
    ) -> tuple[Image.Image, bool]:
        """等比缩放到边界内，不放大

        Returns:
            tuple: (图片, 是否调整了尺寸)
        """
        if bounds is None:
            return img, False

        new_size = bounds.fit(*img.size)
        if new_size == img.size:
            return img, False

        # 插值会破坏透明色匹配，先展开为透明通道
        if img.mode in ("RGB", "L") and "transparency" in img.info:
            img = img.convert("RGBA" if img.mode == "RGB" else "LA")

        logger.debug(f"调整尺寸: {img.size} -> {new_size}")
        return img.resize(new_size, Image.Resampling.LANCZOS), True

    @handle_image_errors("图片编码")
    def encode(self, data: bytes, plan: EncodingPlan) -> EncodedImage:
        """按编码计划重新编码图片

        Raises:
            EncodeError: 解码或编码失败
        """
        with Image.open(BytesIO(data)) as source:
            # 处理EXIF旋转，同时得到与源文件无关的副本
            img = ImageOps.exif_transpose(source)
        original_dimensions = img.size

        img, was_resized = self.resize(img, plan.resize_bounds)

        match plan.encoder_params:
            case JpegParams() as params:
                encoded = self.encode_jpeg(img, params, plan.flatten_background)
            case PngParams() as params:
                encoded = self.encode_png(img, params)
            case WebpParams() as params:
                encoded = self.encode_webp(img, params)
            case _:
                raise EncodeError(f"未知的编码参数: {plan.encoder_params!r}")

        return EncodedImage(
            data=encoded,
            format=plan.target_format,
            original_dimensions=original_dimensions,
            final_dimensions=img.size,
            was_resized=was_resized,
        )

    def encode_jpeg(
        self,
        img: Image.Image,
        params: JpegParams,
        flatten_background: tuple[int, int, int] | None = None,
    ) -> bytes:
        """编码为JPEG，透明像素合成到背景色上"""
        prepared = self.format_processor.prepare_for_format(
            img, OutputFormat.JPEG, flatten_background
        )
        return self._save(prepared, OutputFormat.JPEG, params)

    def encode_png(self, img: Image.Image, params: PngParams) -> bytes:
        """编码为PNG，按需进行调色板量化"""
        prepared = self.format_processor.prepare_for_format(img, OutputFormat.PNG)
        prepared = self.format_processor.apply_palette(prepared, params)
        return self._save(prepared, OutputFormat.PNG, params)

    def encode_webp(self, img: Image.Image, params: WebpParams) -> bytes:
        """编码为WebP"""
        prepared = self.format_processor.prepare_for_format(img, OutputFormat.WEBP)
        return self._save(prepared, OutputFormat.WEBP, params)

    def _save(
        self,
        img: Image.Image,
        output_format: OutputFormat,
        params: JpegParams | PngParams | WebpParams,
    ) -> bytes:
        buffer = BytesIO()
        img.save(
            buffer,
            format=ImageFormats.PILLOW_SAVE_NAMES[output_format],
            **get_save_parameters(params),
        )
        return buffer.getvalue()
