"""图像压缩处理引擎模块。

包含批量处理、并发执行和请求构建等核心处理逻辑。
"""

from .batch import BatchProcessor
from .concurrent_executor import ConcurrentExecutor, ExecutionReport
from .request_builder import RequestBuilder, build_request


__all__ = [
    "BatchProcessor",
    "ConcurrentExecutor",
    "ExecutionReport",
    "RequestBuilder",
    "build_request",
]
