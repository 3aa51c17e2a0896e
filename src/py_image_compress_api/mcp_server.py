"""图像压缩 MCP 服务器。

以本地文件路径驱动与 HTTP 接口相同的压缩流水线。
"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from .compressor import ImageCompressor
from .config import get_config
from .exceptions import CompressionError, ValidationError
from .models.compression_result import BatchResult
from .utils.archive import ZipArchiveSink
from .utils.file_helpers import find_image_files
from .utils.logging_helpers import configure_logging, get_logger
from .utils.message_formatter import MessageFormatter


# MCP 服务器响应类型定义
MCPCompressionResponse = dict[str, Any]
MCPPlanResponse = dict[str, Any]

ARCHIVE_NAME = "compressed_images.zip"


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result: dict[str, Any] = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def validation_error(message: str, field: str | None = None) -> dict[str, Any]:
        """构建验证错误结果"""
        details = {"field": field} if field else None
        return MCPResponseBuilder.error(message, "validation", details)

    @staticmethod
    def file_error(message: str, file_path: str | None = None) -> dict[str, Any]:
        """构建文件相关错误结果"""
        details = {"file_path": file_path} if file_path else None
        return MCPResponseBuilder.error(message, "file", details)

    @staticmethod
    def processing_error(message: str, operation: str | None = None) -> dict[str, Any]:
        """构建处理错误结果"""
        details = {"operation": operation} if operation else None
        return MCPResponseBuilder.error(message, "processing", details)


logger = get_logger()

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("图像压缩服务")

# 全局压缩器实例，首次使用时创建
_compressor: ImageCompressor | None = None


def get_compressor() -> ImageCompressor:
    """获取全局压缩器实例"""
    global _compressor
    if _compressor is None:
        _compressor = ImageCompressor()
    return _compressor


def _expand_inputs(input_paths: list[str] | str) -> list[Path]:
    """展开输入路径，目录按排序递归查找图片"""
    if isinstance(input_paths, str):
        input_paths = [input_paths]

    files: list[Path] = []
    for raw_path in input_paths:
        path = Path(raw_path)
        if not path.exists():
            raise FileNotFoundError(MessageFormatter.file_not_found(raw_path))
        if path.is_dir():
            files.extend(find_image_files(path))
        else:
            files.append(path)
    return files


def _resolve_output(
    output_path: str | None, default_dir: Path, default_name: str
) -> Path:
    """输出路径为空或为目录时使用默认文件名"""
    if output_path is None:
        return default_dir / default_name

    target = Path(output_path)
    if target.is_dir() or output_path.endswith(("/", "\\")):
        return target / default_name
    return target


def _write_output(
    batch: BatchResult,
    files: list[Path],
    output_path: str | None,
    archive: bytes | None,
) -> Path | None:
    """写出单个文件或压缩包，没有成功结果时不写"""
    if archive is None:
        result = batch.results[0]
        if not result.success or result.compressed_bytes is None:
            return None
        target = _resolve_output(output_path, files[0].parent, result.output_name)
        data = result.compressed_bytes
    else:
        if batch.success_count == 0:
            return None
        target = _resolve_output(output_path, files[0].parent, ARCHIVE_NAME)
        data = archive

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return target


def run_compress_images(
    input_paths: list[str] | str,
    output_path: str | None = None,
    quality: str | int | None = None,
    compression_type: str | None = None,
    format: str | None = None,
) -> MCPCompressionResponse:
    """压缩本地图片，单个文件输出图片，多个文件输出 zip 压缩包"""
    compressor = get_compressor()
    try:
        files = _expand_inputs(input_paths)
        request = compressor.build_request(quality, compression_type, format)

        if len(files) == 1:
            batch = compressor.compress_paths(files, request)
            written = _write_output(batch, files, output_path, None)
        else:
            with ZipArchiveSink() as sink:
                batch = compressor.compress_paths(files, request, sink)
            written = _write_output(batch, files, output_path, sink.close())

        return {
            "success": batch.success_count > 0,
            "output_path": str(written) if written else None,
            "summary": batch.get_summary(),
            "total_original_bytes": batch.total_original_bytes,
            "total_compressed_bytes": batch.total_compressed_bytes,
            "compression_ratio": round(batch.get_overall_compression_ratio(), 1),
            "timed_out": batch.timed_out,
            "results": batch.to_status_list(),
        }

    except FileNotFoundError as e:
        logger.error(MessageFormatter.operation_failed("路径处理", input_paths, e))
        return MCPResponseBuilder.file_error(str(e))
    except ValidationError as e:
        return MCPResponseBuilder.validation_error(e.message)
    except OSError as e:
        logger.error(MessageFormatter.operation_failed("写出结果", output_path, e))
        return MCPResponseBuilder.file_error(str(e), output_path)


def run_plan_compression(
    input_path: str,
    quality: str | int | None = None,
    compression_type: str | None = None,
    format: str | None = None,
) -> MCPPlanResponse:
    """探测图片并返回编码计划，不执行编码"""
    compressor = get_compressor()
    try:
        path = Path(input_path)
        if not path.is_file():
            return MCPResponseBuilder.file_error(
                MessageFormatter.file_not_found(input_path), input_path
            )

        request = compressor.build_request(quality, compression_type, format)
        metadata, plan = compressor.plan_file(path.read_bytes(), request)

        return {
            "success": True,
            "file_path": str(path),
            "metadata": metadata.model_dump(mode="json"),
            "total_pixels_human": metadata.get_total_pixels_human(),
            "plan": plan.model_dump(mode="json"),
        }

    except ValidationError as e:
        return MCPResponseBuilder.validation_error(e.message)
    except CompressionError as e:
        return MCPResponseBuilder.processing_error(e.message, "压缩规划")
    except OSError as e:
        logger.error(MessageFormatter.operation_failed("读取文件", input_path, e))
        return MCPResponseBuilder.file_error(str(e), input_path)


# ============================================================================
# MCP 工具
# ============================================================================


@mcp.tool()
def compress_images(
    input_paths: list[str] | str,
    output_path: str | None = None,
    quality: str | int | None = None,
    compression_type: str | None = None,
    format: str | None = None,
) -> MCPCompressionResponse:
    """压缩本地图片文件

    Args:
        input_paths: 输入路径（单个文件、多个文件或目录）
        output_path: 输出路径（可选，单文件默认写到输入文件旁，多文件写 compressed_images.zip）
        quality: 质量 1-100 或预设 low/medium/high/max，默认 80
        compression_type: 压缩模式 lossy/lossless/custom，默认 lossy
        format: 输出格式 jpeg/png/webp，默认自动选择

    Returns:
        dict: 汇总统计与每个文件的状态
    """
    return run_compress_images(
        input_paths, output_path, quality, compression_type, format
    )


@mcp.tool()
def plan_compression(
    input_path: str,
    quality: str | int | None = None,
    compression_type: str | None = None,
    format: str | None = None,
) -> MCPPlanResponse:
    """预览图片的压缩计划（目标格式、尺寸上限、编码参数），不写任何文件

    Args:
        input_path: 输入图像文件路径
        quality: 质量 1-100 或预设 low/medium/high/max
        compression_type: 压缩模式 lossy/lossless/custom
        format: 输出格式 jpeg/png/webp

    Returns:
        dict: 图片元数据与编码计划
    """
    return run_plan_compression(input_path, quality, compression_type, format)


# ============================================================================
# 应用入口
# ============================================================================


def main() -> None:
    """启动 MCP 服务器"""
    config = get_config()
    configure_logging(config.logging.LOG_LEVEL, config.logging.LOG_FORMAT)
    logger.info("启动图片压缩 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
