"""数据模型包。

定义图片压缩相关的数据结构和模型。
"""

from .compression_config import (
    CompressionMode,
    CompressionRequest,
    EncodingPlan,
    JpegParams,
    PlannerSettings,
    PngParams,
    ResizeBounds,
    UploadedFile,
    WebpParams,
    compute_resized_dimensions,
)
from .compression_result import (
    BatchResult,
    CompressionResult,
    compression_ratio,
)
from .constants import (
    ChromaSubsampling,
    FailureReason,
    ImageFormat,
    ImageFormats,
    OutputFormat,
    QualityDefaults,
    QualityPreset,
    ValidationLimits,
    clamp_quality,
    get_extension,
    get_mime_type,
    parse_output_format,
    source_format_from_pillow,
    supports_transparency,
)
from .image_metadata import ImageMetadata


__all__ = [
    "BatchResult",
    "ChromaSubsampling",
    "CompressionMode",
    "CompressionRequest",
    "CompressionResult",
    "EncodingPlan",
    "FailureReason",
    "ImageFormat",
    "ImageFormats",
    "ImageMetadata",
    "JpegParams",
    "OutputFormat",
    "PlannerSettings",
    "PngParams",
    "QualityDefaults",
    "QualityPreset",
    "ResizeBounds",
    "UploadedFile",
    "ValidationLimits",
    "WebpParams",
    "clamp_quality",
    "compression_ratio",
    "compute_resized_dimensions",
    "get_extension",
    "get_mime_type",
    "parse_output_format",
    "source_format_from_pillow",
    "supports_transparency",
]
