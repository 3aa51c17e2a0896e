"""批量处理器模块。

批量压缩流程：批次级校验、命名分配、并发处理与结果汇总。
"""

from collections.abc import Sequence

from ..core.codec import PillowCodec
from ..core.compression_engine import process_file
from ..core.planner import CompressionPlanner
from ..exceptions import CountExceededError, NoInputError
from ..models.compression_config import CompressionRequest, UploadedFile
from ..models.compression_result import BatchResult, CompressionResult
from ..utils.archive import ZipArchiveSink
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from ..utils.naming_helpers import FileNamingStrategy
from .concurrent_executor import ConcurrentExecutor, ExecutionReport


logger = get_logger()


class BatchProcessor:
    """批量图像处理器

    文件之间相互独立，单个文件失败不影响其他文件；结果顺序与输入顺序一致。
    """

    def __init__(
        self,
        max_workers: int = 4,
        batch_timeout_seconds: float | None = 30.0,
        planner: CompressionPlanner | None = None,
        codec: PillowCodec | None = None,
    ):
        """初始化批量处理器

        Args:
            max_workers: 最大并发数
            batch_timeout_seconds: 整批超时秒数
            planner: 压缩规划器
            codec: 编解码器
        """
        self.max_workers = max_workers
        self.planner = planner or CompressionPlanner()
        self.codec = codec or PillowCodec()
        self.concurrent_executor = ConcurrentExecutor(max_workers, batch_timeout_seconds)

    def process(
        self,
        files: Sequence[UploadedFile],
        request: CompressionRequest,
        sink: ZipArchiveSink | None = None,
    ) -> BatchResult:
        """处理一批上传文件

        Args:
            files: 上传文件列表
            request: 压缩请求，批次内共用
            sink: 压缩包写入器；提供时成功结果完成即写入，并释放结果中的字节

        Returns:
            BatchResult: 批量处理结果

        Raises:
            NoInputError: 没有文件
            CountExceededError: 文件数超过上限
        """
        self._validate_batch(files, request)

        # 唯一名在提交前按输入顺序分配，与完成顺序无关
        stems = FileNamingStrategy.unique_stems(upload.name for upload in files)

        def task(index: int, upload: UploadedFile) -> CompressionResult:
            return process_file(
                upload,
                request,
                index=index,
                stem=stems[index],
                planner=self.planner,
                codec=self.codec,
            )

        logger.info(f"开始批量处理 {len(files)} 个文件 (mode={request.mode.value})")
        report = self.concurrent_executor.execute_tasks(
            files, task, on_result=self._archive_writer(sink) if sink else None
        )

        batch_result = self._create_batch_result(report)
        logger.info(batch_result.get_summary())
        return batch_result

    def _validate_batch(
        self, files: Sequence[UploadedFile], request: CompressionRequest
    ) -> None:
        """批次级校验，违反时不处理任何文件"""
        if not files:
            raise NoInputError(MessageFormatter.no_input())

        if len(files) > request.max_batch_files:
            raise CountExceededError(
                MessageFormatter.count_exceeded(len(files), request.max_batch_files)
            )

    def _archive_writer(self, sink: ZipArchiveSink):
        """成功结果写入压缩包后释放其字节"""

        def write(result: CompressionResult) -> CompressionResult:
            sink.add(result.output_name, result.compressed_bytes or b"")
            return result.model_copy(update={"compressed_bytes": None})

        return write

    def _create_batch_result(self, report: ExecutionReport) -> BatchResult:
        """创建批量处理结果"""
        success_count = sum(1 for r in report.results if r.success)
        success = success_count > 0

        return BatchResult(
            results=report.results,
            success=success,
            error=None if success else "所有文件处理都失败",
            timed_out=report.timed_out,
            aborted=report.aborted,
        )
