"""响应构建模块。

单文件返回压缩后的字节，多文件返回 zip 压缩包，统计信息放在响应头中。
"""

import json
from urllib.parse import quote

from fastapi.responses import JSONResponse, Response

from ..models.compression_result import BatchResult, CompressionResult
from ..models.constants import FailureReason, get_mime_type


ARCHIVE_NAME = "compressed_images.zip"

# 单文件失败时的状态码，其余原因为 500
_CLIENT_ERROR_REASONS = frozenset(
    {FailureReason.TOO_LARGE, FailureReason.UNSUPPORTED_TYPE}
)


def content_disposition(filename: str) -> str:
    """生成 attachment 头，非 ASCII 文件名附带 RFC 5987 编码"""
    ascii_name = filename.encode("ascii", "ignore").decode("ascii") or "download"
    header = f'attachment; filename="{ascii_name}"'
    if ascii_name != filename:
        header += f"; filename*=UTF-8''{quote(filename)}"
    return header


def format_ratio(ratio: float) -> str:
    """压缩比保留一位小数"""
    return f"{ratio:.1f}"


def error_response(status_code: int, message: str) -> JSONResponse:
    """统一的错误响应体"""
    return JSONResponse(status_code=status_code, content={"error": message})


def failure_status_code(reason: FailureReason | None) -> int:
    """单文件失败原因映射为 HTTP 状态码"""
    return 400 if reason in _CLIENT_ERROR_REASONS else 500


def single_file_response(result: CompressionResult) -> Response:
    """单文件响应：成功返回字节，失败返回错误体"""
    if not result.success or result.compressed_bytes is None:
        return error_response(
            failure_status_code(result.failure_reason), result.error or "压缩失败"
        )

    return Response(
        content=result.compressed_bytes,
        media_type=get_mime_type(result.output_format),
        headers={
            "X-Original-Size": str(result.original_size),
            "X-Compressed-Size": str(result.compressed_size),
            "X-Compression-Ratio": format_ratio(result.get_compression_ratio()),
            "X-Output-Format": result.output_format.value,
            "Content-Disposition": content_disposition(result.output_name),
        },
    )


def archive_response(batch: BatchResult, archive: bytes) -> Response:
    """批量响应：zip 压缩包加汇总统计"""
    file_results = json.dumps(
        batch.to_status_list(), ensure_ascii=True, separators=(",", ":")
    )
    return Response(
        content=archive,
        media_type="application/zip",
        headers={
            "X-Original-Size": str(batch.total_original_bytes),
            "X-Compressed-Size": str(batch.total_compressed_bytes),
            "X-Compression-Ratio": format_ratio(batch.get_overall_compression_ratio()),
            "X-Files-Processed": str(batch.success_count),
            "X-Files-Failed": str(batch.failure_count),
            "X-File-Results": file_results,
            "Content-Disposition": content_disposition(ARCHIVE_NAME),
        },
    )


# 浏览器端需要读取的自定义响应头
EXPOSED_HEADERS = [
    "X-Original-Size",
    "X-Compressed-Size",
    "X-Compression-Ratio",
    "X-Output-Format",
    "X-Files-Processed",
    "X-Files-Failed",
    "X-File-Results",
    "Content-Disposition",
]
