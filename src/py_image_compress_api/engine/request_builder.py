"""请求构建器模块。

把 HTTP 表单或工具参数中的字符串解析为 CompressionRequest，集成参数验证。
"""

from pydantic import ValidationError as PydanticValidationError

from ..config import AppConfig, get_config
from ..exceptions import CountExceededError, NoInputError, ValidationError
from ..models.compression_config import CompressionMode, CompressionRequest
from ..models.constants import (
    OutputFormat,
    QualityDefaults,
    QualityPreset,
    clamp_quality,
    parse_output_format,
)
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter, format_validation_error


logger = get_logger()

# 表示"自动选择格式"的取值
_AUTO_FORMAT_VALUES = frozenset({"", "auto", "original"})


class RequestBuilder:
    """压缩请求构建器

    所有限制与规划器参数来自应用配置，规划器本身不读取全局状态。
    """

    def __init__(self, config: AppConfig | None = None):
        self.config = config or get_config()

    def build(
        self,
        quality: str | int | None = None,
        compression_type: str | None = None,
        format: str | None = None,
    ) -> CompressionRequest:
        """构建压缩请求

        Args:
            quality: 质量 1-100 或预设名 low/medium/high/max
            compression_type: 压缩模式 lossy/lossless/custom
            format: 输出格式 jpeg/png/webp，空值为自动选择

        Returns:
            CompressionRequest: 压缩请求

        Raises:
            ValidationError: 参数验证失败
        """
        try:
            return CompressionRequest(
                quality=self.parse_quality(quality),
                mode=self.parse_mode(compression_type),
                explicit_format=self.parse_format(format),
                max_file_size=self.config.limits.MAX_FILE_SIZE_BYTES,
                max_batch_files=self.config.limits.MAX_BATCH_FILES,
                planner=self.config.compression.planner_settings(),
            )
        except PydanticValidationError as e:
            raise ValidationError(self._format_validation_error(e)) from e

    def parse_quality(self, value: str | int | None) -> int:
        """解析质量参数，超出范围的数值被限制到 [1, 100]"""
        if value is None:
            return self.config.compression.DEFAULT_QUALITY

        if isinstance(value, bool):
            raise ValidationError(format_validation_error("quality", value, "1-100"))

        if isinstance(value, int):
            return clamp_quality(value)

        text = value.strip().lower()
        if not text:
            return self.config.compression.DEFAULT_QUALITY

        try:
            return QualityDefaults.PRESETS[QualityPreset(text)]
        except ValueError:
            pass

        try:
            return clamp_quality(int(text))
        except ValueError as e:
            raise ValidationError(
                format_validation_error(
                    "quality", value, "1-100 或 low/medium/high/max"
                )
            ) from e

    def parse_mode(self, value: str | None) -> CompressionMode:
        """解析压缩模式，空值为有损"""
        if value is None or not value.strip():
            return CompressionMode.LOSSY

        try:
            return CompressionMode(value.strip().lower())
        except ValueError as e:
            raise ValidationError(
                format_validation_error(
                    "compressionType", value, "lossy/lossless/custom"
                )
            ) from e

    def parse_format(self, value: str | None) -> OutputFormat | None:
        """解析输出格式，空值或 auto 表示自动选择"""
        if value is None or value.strip().lower() in _AUTO_FORMAT_VALUES:
            return None

        try:
            return parse_output_format(value)
        except ValueError as e:
            raise ValidationError(
                format_validation_error("format", value, "jpeg/png/webp")
            ) from e

    def parse_file_count(self, value: str | int | None) -> int:
        """解析并校验批量文件数，超过上限时在读取任何文件前拒绝

        Raises:
            NoInputError: 文件数为 0
            CountExceededError: 文件数超过上限
            ValidationError: 不是非负整数
        """
        try:
            count = int(value) if value is not None else 0
        except ValueError as e:
            raise ValidationError(
                format_validation_error("fileCount", value, "非负整数")
            ) from e

        if count < 0:
            raise ValidationError(format_validation_error("fileCount", value, "非负整数"))
        if count == 0:
            raise NoInputError(MessageFormatter.no_input())

        limit = self.config.limits.MAX_BATCH_FILES
        if count > limit:
            raise CountExceededError(MessageFormatter.count_exceeded(count, limit))

        return count

    def _format_validation_error(self, error: PydanticValidationError) -> str:
        """格式化验证错误"""
        messages = []
        for err in error.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            msg = err["msg"]
            if field:
                messages.append(f"{field}: {msg}")
            else:
                messages.append(msg)
        return "; ".join(messages)


def build_request(
    quality: str | int | None = None,
    compression_type: str | None = None,
    format: str | None = None,
) -> CompressionRequest:
    """便捷的请求构建函数，使用当前全局配置"""
    return RequestBuilder().build(quality, compression_type, format)
