"""Python 图像压缩服务。

基于 Pillow 的图片压缩：自动选择输出格式与编码参数，支持批量处理。
"""

__version__ = "0.1.0"
__description__ = "图片压缩服务，基于 Pillow 与 FastAPI"

# 核心功能导出
from .compressor import ImageCompressor
from .core.planner import CompressionPlanner, plan
from .models.compression_config import (
    CompressionMode,
    CompressionRequest,
    EncodingPlan,
    UploadedFile,
    compute_resized_dimensions,
)
from .models.compression_result import BatchResult, CompressionResult


__all__ = [
    "BatchResult",
    "CompressionMode",
    "CompressionPlanner",
    "CompressionRequest",
    "CompressionResult",
    "EncodingPlan",
    "ImageCompressor",
    "UploadedFile",
    "compute_resized_dimensions",
    "get_version",
    "plan",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
