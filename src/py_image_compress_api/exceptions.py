"""图像压缩异常处理模块。

定义统一的异常类和错误处理机制，包含图像处理异常转换装饰器。
"""

from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.compression_result import CompressionResult
from .models.constants import FailureReason
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


# 统一的异常类型
class CompressionError(Exception):
    """压缩相关错误基类"""

    def __init__(self, message: str, file_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.file_name = file_name


class ValidationError(CompressionError):
    """参数验证错误 - 请求级别，返回 400"""

    pass


class NoInputError(ValidationError):
    """没有提供任何文件"""

    pass


class CountExceededError(ValidationError):
    """批量文件数超过上限"""

    pass


class FileTooLargeError(ValidationError):
    """单文件超过大小上限"""

    pass


class UnsupportedFormatError(CompressionError):
    """不是可识别的图像"""

    pass


class EncodeError(CompressionError):
    """结构合法的图像编码失败"""

    pass


def handle_image_errors(operation_name: str = "图像处理"):
    """统一的图像处理异常转换装饰器

    把 Pillow 抛出的异常转换为本模块的异常类型，已转换过的异常原样抛出。

    Args:
        operation_name: 操作名称，用于日志记录
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except CompressionError:
                raise
            except UnidentifiedImageError as e:
                logger.debug(f"{operation_name} - 无法识别图像格式: {e}")
                raise UnsupportedFormatError(f"无法识别的图像格式: {e}") from e
            except DecompressionBombError as e:
                logger.warning(f"{operation_name} - 图像像素过多: {e}")
                raise EncodeError(f"图像像素过多，可能存在安全风险: {e}") from e
            except (OSError, ValueError, SyntaxError) as e:
                # Pillow 对损坏数据和不支持的子格式抛出这几类异常
                logger.debug(f"{operation_name} - 编解码失败: {e}")
                raise EncodeError(f"{operation_name}失败: {e}") from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    把异常转换为失败的单文件结果，保证流水线总能得到结果而不是异常。
    """

    @staticmethod
    def _log_error(
        operation: str, name: str, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录"""
        log_msg = MessageFormatter.format_error(operation, name, error)
        getattr(logger, level, logger.error)(log_msg, exc_info=level == "error")

    @staticmethod
    def failure_result(
        name: str,
        original_size: int,
        reason: FailureReason,
        error_msg: str,
        index: int = 0,
    ) -> CompressionResult:
        """创建标准化的失败结果"""
        return CompressionResult(
            index=index,
            original_name=name,
            original_size=original_size,
            success=False,
            error=error_msg,
            failure_reason=reason,
        )

    @staticmethod
    def handle_compression_error(
        error: Exception,
        name: str,
        original_size: int,
        index: int = 0,
        operation: str = "图像压缩",
    ) -> CompressionResult:
        """按异常类型分派为对应的失败原因"""
        match error:
            case FileTooLargeError():
                reason, level = FailureReason.TOO_LARGE, "warning"
            case UnsupportedFormatError():
                reason, level = FailureReason.UNSUPPORTED_TYPE, "warning"
            case EncodeError():
                reason, level = FailureReason.ENCODE_ERROR, "warning"
            case _:
                reason, level = FailureReason.INTERNAL_ERROR, "error"

        ErrorHandler._log_error(operation, name, error, level)
        message = (
            error.message
            if isinstance(error, CompressionError)
            else f"处理失败: {error!r}"
        )
        return ErrorHandler.failure_result(
            name=name,
            original_size=original_size,
            reason=reason,
            error_msg=message,
            index=index,
        )
