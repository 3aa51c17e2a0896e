"""并发执行器模块。

在有界线程池中处理一批上传文件，结果按输入序号落位，支持整批超时与内部错误中止。
"""

from collections.abc import Callable, Sequence
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import NamedTuple

from ..exceptions import ErrorHandler
from ..models.compression_config import UploadedFile
from ..models.compression_result import CompressionResult
from ..models.constants import FailureReason
from ..utils.logging_helpers import get_logger


logger = get_logger()

ABORTED_MESSAGE = "批处理已中止"
TIMEOUT_MESSAGE = "批处理超时，文件未完成"

TaskFunction = Callable[[int, UploadedFile], CompressionResult]
ResultCallback = Callable[[CompressionResult], CompressionResult]


class ExecutionReport(NamedTuple):
    """执行报告"""

    results: list[CompressionResult]
    timed_out: bool
    aborted: bool


class ConcurrentExecutor:
    """通用并发执行器

    单个文件的失败不会取消其他文件；只有内部错误会取消尚未开始的文件。
    """

    def __init__(self, max_workers: int = 4, timeout: float | None = 30.0):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数
            timeout: 整批超时秒数，None 表示不限制
        """
        self.max_workers = max_workers
        self.timeout = timeout

    def execute_tasks(
        self,
        uploads: Sequence[UploadedFile],
        task_function: TaskFunction,
        on_result: ResultCallback | None = None,
    ) -> ExecutionReport:
        """执行并发任务

        Args:
            uploads: 上传文件列表
            task_function: 任务函数，参数为 (序号, 上传文件)
            on_result: 成功结果完成时的回调，返回值替换原结果

        Returns:
            ExecutionReport: 与输入顺序一致的结果及超时/中止标记
        """
        if not uploads:
            return ExecutionReport([], False, False)

        slots: list[CompressionResult | None] = [None] * len(uploads)
        timed_out = False
        aborted = False

        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="compress"
        )
        try:
            # 提交任务阶段
            future_to_index: dict[Future[CompressionResult], int] = {
                executor.submit(task_function, index, upload): index
                for index, upload in enumerate(uploads)
            }

            # 收集结果阶段
            try:
                for future in as_completed(future_to_index, timeout=self.timeout):
                    index = future_to_index[future]
                    result = self._resolve(future, index, uploads[index], on_result)
                    slots[index] = result

                    if (
                        result.failure_reason is FailureReason.INTERNAL_ERROR
                        and not aborted
                    ):
                        aborted = True
                        cancelled = sum(f.cancel() for f in future_to_index)
                        logger.error(
                            f"内部错误，中止批处理: {result.original_name}，"
                            f"取消 {cancelled} 个未开始的文件"
                        )
            except FutureTimeoutError:
                timed_out = True
                logger.warning(
                    f"批处理超时 ({self.timeout}s)，"
                    f"{sum(slot is None for slot in slots)} 个文件未完成"
                )
        finally:
            # 超时时不等待仍在运行的任务
            executor.shutdown(wait=not timed_out, cancel_futures=True)

        results = [
            slot
            if slot is not None
            else self._unfinished_result(index, uploads[index], timed_out)
            for index, slot in enumerate(slots)
        ]
        return ExecutionReport(results, timed_out, aborted)

    def _resolve(
        self,
        future: Future[CompressionResult],
        index: int,
        upload: UploadedFile,
        on_result: ResultCallback | None,
    ) -> CompressionResult:
        """取出任务结果，任何异常都转换为失败结果"""
        try:
            result = future.result()
            if on_result is not None and result.success:
                result = on_result(result)
        except CancelledError:
            return ErrorHandler.failure_result(
                upload.name,
                upload.original_size,
                FailureReason.INTERNAL_ERROR,
                ABORTED_MESSAGE,
                index,
            )
        except Exception as e:
            return ErrorHandler.handle_compression_error(
                e, upload.name, upload.original_size, index, "并发任务处理"
            )

        if result.success:
            logger.debug(f"处理成功: {upload.name}")
        else:
            logger.warning(f"处理失败: {upload.name} - {result.error}")
        return result

    def _unfinished_result(
        self, index: int, upload: UploadedFile, timed_out: bool
    ) -> CompressionResult:
        """未完成的文件：超时或因中止未执行"""
        if timed_out:
            return ErrorHandler.failure_result(
                upload.name,
                upload.original_size,
                FailureReason.TIMEOUT,
                TIMEOUT_MESSAGE,
                index,
            )
        return ErrorHandler.failure_result(
            upload.name,
            upload.original_size,
            FailureReason.INTERNAL_ERROR,
            ABORTED_MESSAGE,
            index,
        )
