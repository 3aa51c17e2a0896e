"""图像压缩器接口。

HTTP 路由与 MCP 工具共用的入口，组合请求构建、批量处理与规划功能。
"""

from collections.abc import Sequence
from pathlib import Path

from .config import AppConfig, get_config
from .core.codec import PillowCodec
from .core.planner import CompressionPlanner
from .engine.batch import BatchProcessor
from .engine.request_builder import RequestBuilder
from .exceptions import ValidationError
from .models import (
    BatchResult,
    CompressionRequest,
    CompressionResult,
    EncodingPlan,
    ImageMetadata,
    UploadedFile,
)
from .utils.archive import ZipArchiveSink
from .utils.file_helpers import load_upload
from .utils.logging_helpers import get_logger


logger = get_logger()


class ImageCompressor:
    """图像压缩器。

    提供单文件、批量和本地路径三种压缩入口，以及只规划不编码的预览。
    """

    def __init__(
        self,
        max_workers: int | None = None,
        batch_timeout_seconds: float | None = None,
        config: AppConfig | None = None,
    ):
        """初始化压缩器。

        Args:
            max_workers: 批量处理时的最大并发数，None 使用配置值
            batch_timeout_seconds: 整批超时秒数，None 使用配置值
            config: 应用配置，None 使用全局配置
        """
        self.config = config or get_config()
        max_workers = max_workers or self.config.limits.MAX_WORKERS
        if max_workers <= 0:
            raise ValidationError("max_workers 必须大于 0")

        self.request_builder = RequestBuilder(self.config)
        self.planner = CompressionPlanner()
        self.codec = PillowCodec()
        self.batch_processor = BatchProcessor(
            max_workers=max_workers,
            batch_timeout_seconds=batch_timeout_seconds
            or self.config.limits.BATCH_TIMEOUT_SECONDS,
            planner=self.planner,
            codec=self.codec,
        )

        logger.debug("初始化图像压缩器")

    def build_request(
        self,
        quality: str | int | None = None,
        compression_type: str | None = None,
        format: str | None = None,
    ) -> CompressionRequest:
        """从原始参数构建压缩请求"""
        return self.request_builder.build(quality, compression_type, format)

    def compress_batch(
        self,
        files: Sequence[UploadedFile],
        request: CompressionRequest,
        sink: ZipArchiveSink | None = None,
    ) -> BatchResult:
        """批量压缩上传文件。

        Examples:
            >>> compressor = ImageCompressor()
            >>> request = compressor.build_request(quality="high")
            >>> result = compressor.compress_batch(uploads, request)
            >>> print(result.get_summary())
        """
        return self.batch_processor.process(files, request, sink)

    def compress_upload(
        self, upload: UploadedFile, request: CompressionRequest
    ) -> CompressionResult:
        """压缩单个上传文件，失败以结果形式返回"""
        return self.compress_batch([upload], request).results[0]

    def compress_paths(
        self,
        paths: Sequence[str | Path],
        request: CompressionRequest,
        sink: ZipArchiveSink | None = None,
    ) -> BatchResult:
        """读取本地文件并批量压缩"""
        uploads = [load_upload(path, request.max_file_size) for path in paths]
        return self.compress_batch(uploads, request, sink)

    def plan_file(
        self, data: bytes, request: CompressionRequest
    ) -> tuple[ImageMetadata, EncodingPlan]:
        """只探测和规划，不执行编码

        Raises:
            UnsupportedFormatError: 不是可识别的图片
        """
        metadata = self.codec.probe(data)
        return metadata, self.planner.plan(metadata, request)
