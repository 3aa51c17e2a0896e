"""图像处理相关常量定义。

格式分类、MIME 类型、扩展名映射以及质量预设，避免在各模块中硬编码重复。
"""

from enum import Enum
from typing import Final


class ImageFormat(str, Enum):
    """探测得到的源图像格式（封闭集合）"""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    GIF = "gif"
    SVG = "svg"
    OTHER = "other"


class OutputFormat(str, Enum):
    """编码器可输出的目标格式"""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"


class ChromaSubsampling(str, Enum):
    """JPEG 色度子采样模式"""

    S444 = "4:4:4"
    S422 = "4:2:2"
    S420 = "4:2:0"

    @property
    def pillow_value(self) -> int:
        """Pillow save() 的 subsampling 取值"""
        return {"4:4:4": 0, "4:2:2": 1, "4:2:0": 2}[self.value]


class FailureReason(str, Enum):
    """单文件失败原因"""

    TOO_LARGE = "TooLarge"
    UNSUPPORTED_TYPE = "UnsupportedType"
    ENCODE_ERROR = "EncodeError"
    INTERNAL_ERROR = "InternalError"
    TIMEOUT = "Timeout"


class QualityPreset(str, Enum):
    """质量预设，与前端的 20%/40%/60%/80%/Max 档位对应"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    MAX = "max"


class ImageFormats:
    """格式分类与映射"""

    # 用户友好的别名
    ALIASES: Final[dict[str, str]] = {
        "JPG": "JPEG",
        "MPO": "JPEG",  # 多图 JPEG（部分相机输出）
    }

    # Pillow 格式名到源格式的映射
    PILLOW_FORMATS: Final[dict[str, ImageFormat]] = {
        "PNG": ImageFormat.PNG,
        "JPEG": ImageFormat.JPEG,
        "WEBP": ImageFormat.WEBP,
        "GIF": ImageFormat.GIF,
    }

    MIME_TYPES: Final[dict[OutputFormat, str]] = {
        OutputFormat.JPEG: "image/jpeg",
        OutputFormat.PNG: "image/png",
        OutputFormat.WEBP: "image/webp",
    }

    EXTENSIONS: Final[dict[OutputFormat, str]] = {
        OutputFormat.JPEG: ".jpg",
        OutputFormat.PNG: ".png",
        OutputFormat.WEBP: ".webp",
    }

    PILLOW_SAVE_NAMES: Final[dict[OutputFormat, str]] = {
        OutputFormat.JPEG: "JPEG",
        OutputFormat.PNG: "PNG",
        OutputFormat.WEBP: "WEBP",
    }

    TRANSPARENCY_FORMATS: Final[set[OutputFormat]] = {
        OutputFormat.PNG,
        OutputFormat.WEBP,
    }

    # 规划器可识别的栅格格式
    RECOGNIZED_RASTER: Final[set[ImageFormat]] = {
        ImageFormat.PNG,
        ImageFormat.JPEG,
        ImageFormat.WEBP,
        ImageFormat.GIF,
    }


class QualityDefaults:
    """质量相关默认值"""

    DEFAULT: Final[int] = 80
    MIN_QUALITY: Final[int] = 1
    MAX_QUALITY: Final[int] = 100

    PRESETS: Final[dict[QualityPreset, int]] = {
        QualityPreset.LOW: 20,
        QualityPreset.MEDIUM: 60,
        QualityPreset.HIGH: 80,
        QualityPreset.MAX: 100,
    }


class ValidationLimits:
    """验证相关限制"""

    MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MiB
    MAX_BATCH_FILES: Final[int] = 50


# 便捷访问函数
def clamp_quality(value: int) -> int:
    """把质量值限制在 [1, 100]"""
    return max(QualityDefaults.MIN_QUALITY, min(QualityDefaults.MAX_QUALITY, value))


def get_format_alias(format_str: str) -> str:
    """获取格式的标准名称"""
    format_upper = format_str.strip().upper()
    return ImageFormats.ALIASES.get(format_upper, format_upper)


def parse_output_format(format_str: str) -> OutputFormat:
    """解析输出格式字符串，支持 jpg 等别名

    Raises:
        ValueError: 不是可输出的格式
    """
    return OutputFormat(get_format_alias(format_str).lower())


def source_format_from_pillow(pillow_format: str | None) -> ImageFormat:
    """Pillow 的格式名映射为源格式，未知格式归为 other"""
    if not pillow_format:
        return ImageFormat.OTHER
    standard = get_format_alias(pillow_format)
    return ImageFormats.PILLOW_FORMATS.get(standard, ImageFormat.OTHER)


def get_mime_type(output_format: OutputFormat) -> str:
    """获取格式的 MIME 类型"""
    return ImageFormats.MIME_TYPES[output_format]


def get_extension(output_format: OutputFormat) -> str:
    """获取格式的首选扩展名"""
    return ImageFormats.EXTENSIONS[output_format]


def supports_transparency(output_format: OutputFormat) -> bool:
    """检查格式是否支持透明度"""
    return output_format in ImageFormats.TRANSPARENCY_FORMATS
