"""核心模块包。

图像探测、压缩规划、编解码与单文件处理流程。
"""

from ..models.image_metadata import ImageMetadata
from .codec import EncodedImage, PillowCodec
from .compression_engine import process_file
from .formats import FormatProcessor, get_save_parameters
from .image_info import ImageInfoExtractor, probe_image
from .planner import CompressionPlanner, plan


__all__ = [
    "CompressionPlanner",
    "EncodedImage",
    "FormatProcessor",
    "ImageInfoExtractor",
    "ImageMetadata",
    "PillowCodec",
    "get_save_parameters",
    "plan",
    "probe_image",
    "process_file",
]
