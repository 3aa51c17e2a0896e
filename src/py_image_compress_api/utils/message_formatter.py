"""消息格式化工具模块。

提供统一的错误消息、成功消息格式化功能。
"""

from typing import Any

from humanize import naturalsize


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def file_not_found(file_path: Any) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def no_input() -> str:
        """没有上传文件"""
        return "未提供文件"

    @staticmethod
    def count_exceeded(count: int, limit: int) -> str:
        """批量文件数超限"""
        return f"文件数量 {count} 超过上限 {limit}"

    @staticmethod
    def file_too_large(name: str, size: int, limit: int) -> str:
        """单文件超限"""
        return (
            f"文件过大: {name} ({naturalsize(size, binary=True)})，"
            f"上限 {naturalsize(limit, binary=True)}"
        )

    @staticmethod
    def unsupported_type(name: str, detail: str | None = None) -> str:
        """不支持的文件类型"""
        msg = f"不支持的文件类型: {name}"
        if detail:
            msg += f" ({detail})"
        return msg

    @staticmethod
    def operation_failed(operation: str, target: Any, error: Exception | None = None) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def validation_error(field: str, value: Any, reason: str | None = None) -> str:
        """参数验证错误消息"""
        msg = f"参数验证失败 - {field}: {value}"
        if reason:
            msg += f" ({reason})"
        return msg

    @staticmethod
    def format_error(operation: str, name: Any, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{name}]: {error}"


def format_validation_error(field: str, value: Any, expected: str | None = None) -> str:
    """格式化验证错误消息"""
    reason = f"期望: {expected}" if expected else None
    return MessageFormatter.validation_error(field, value, reason)
