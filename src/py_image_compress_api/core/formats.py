"""格式处理器模块。

把解码后的图片转换为目标格式可接受的色彩模式，并把编码计划翻译为 Pillow 保存参数。
"""

from typing import Any

from PIL import Image

from ..models.compression_config import JpegParams, PngParams, WebpParams
from ..models.constants import OutputFormat
from ..utils.logging_helpers import get_logger


logger = get_logger()

# 本身携带透明通道的色彩模式
_ALPHA_MODES = frozenset({"RGBA", "LA", "PA", "RGBa", "La"})


def has_alpha_channel(img: Image.Image) -> bool:
    """图片是否携带透明信息"""
    return img.mode in _ALPHA_MODES or "transparency" in img.info


class FormatProcessor:
    """格式处理器"""

    def prepare_for_format(
        self,
        img: Image.Image,
        target_format: OutputFormat,
        flatten_background: tuple[int, int, int] | None = None,
    ) -> Image.Image:
        """为目标格式准备图片

        Args:
            img: PIL图片对象
            target_format: 目标格式
            flatten_background: 丢弃透明度时合成的背景色

        Returns:
            Image.Image: 处理后的图片对象
        """
        match target_format:
            case OutputFormat.JPEG:
                return self._prepare_for_jpeg(img, flatten_background)
            case OutputFormat.PNG:
                return self._prepare_for_png(img)
            case OutputFormat.WEBP:
                return self._prepare_for_webp(img)

    def _prepare_for_jpeg(
        self, img: Image.Image, background_color: tuple[int, int, int] | None
    ) -> Image.Image:
        """为JPEG格式准备图片，JPEG 不支持透明度"""
        if has_alpha_channel(img):
            background_color = background_color or (255, 255, 255)
            rgba = img.convert("RGBA")
            background = Image.new("RGB", rgba.size, background_color)
            # 使用alpha通道合成到背景上
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background

        if img.mode != "RGB":
            # CMYK、灰度、调色板等统一转换为RGB
            return img.convert("RGB")

        return img

    def _prepare_for_png(self, img: Image.Image) -> Image.Image:
        """为PNG格式准备图片"""
        if img.mode == "P":
            # 调色板模式，检查是否有透明度
            if "transparency" in img.info:
                return img.convert("RGBA")
            return img.convert("RGB")

        if img.mode in ("LA", "PA", "RGBa", "La"):
            return img.convert("RGBA")

        if img.mode == "CMYK":
            return img.convert("RGB")

        # RGB、RGBA、L、1 以及16位灰度 PNG 都直接支持
        return img

    def _prepare_for_webp(self, img: Image.Image) -> Image.Image:
        """为WebP格式准备图片，WebP 只接受 RGB 和 RGBA

        RGB 图片的 tRNS 透明色不会被 WebP 编码器保留，需要先展开为 RGBA。
        """
        if img.mode == "RGBA" or (img.mode == "RGB" and not has_alpha_channel(img)):
            return img

        if has_alpha_channel(img):
            return img.convert("RGBA")
        return img.convert("RGB")

    def apply_palette(self, img: Image.Image, params: PngParams) -> Image.Image:
        """把图片量化为调色板模式

        透明图片使用 FASTOCTREE，它是 Pillow 内置算法中唯一支持 RGBA 的。
        """
        if not params.palette:
            return img

        colors = params.colors or 256
        dither = Image.Dither.FLOYDSTEINBERG if params.dither >= 0.5 else Image.Dither.NONE

        if has_alpha_channel(img):
            source = img.convert("RGBA")
            method = Image.Quantize.FASTOCTREE
        else:
            source = img.convert("RGB")
            method = Image.Quantize.MEDIANCUT

        logger.debug(f"PNG调色板量化: colors={colors}, dither={params.dither}")
        return source.quantize(colors=colors, method=method, dither=dither)


def get_save_parameters(params: JpegParams | PngParams | WebpParams) -> dict[str, Any]:
    """把编码参数翻译为 Pillow save() 参数（不包含 format）"""
    match params:
        case JpegParams():
            return get_jpeg_params(params)
        case PngParams():
            return get_png_params(params)
        case WebpParams():
            return get_webp_params(params)
    raise TypeError(f"未知的编码参数类型: {type(params).__name__}")


def get_jpeg_params(params: JpegParams) -> dict[str, Any]:
    """获取JPEG压缩参数

    - optimize: 额外处理以找到最优霍夫曼表
    - progressive: 渐进式JPEG，适合网络传输
    - subsampling: 色度子采样，影响质量和文件大小
    """
    return {
        "quality": params.quality,
        "optimize": params.optimize,
        "progressive": params.progressive,
        "subsampling": params.subsampling.pillow_value,
    }


def get_png_params(params: PngParams) -> dict[str, Any]:
    """获取PNG压缩参数

    PNG 的"质量"通过调色板量化实现，在保存前由 FormatProcessor.apply_palette 处理。
    """
    return {
        "optimize": params.optimize,
        "compress_level": params.compress_level,
    }


def get_webp_params(params: WebpParams) -> dict[str, Any]:
    """获取WebP压缩参数

    - method：0=快速，6=最慢但最佳压缩
    - alpha_quality：控制透明通道质量，100为无损
    """
    save_params: dict[str, Any] = {
        "quality": params.quality,
        "method": params.method,
        "lossless": params.lossless,
    }
    if params.alpha_quality is not None:
        save_params["alpha_quality"] = params.alpha_quality
    if params.lossless:
        # 精确无损，保持透明像素的RGB值
        save_params["exact"] = True
    return save_params
