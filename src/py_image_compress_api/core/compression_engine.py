"""压缩引擎模块。

单个文件的完整处理流程：校验、探测、规划、编码（含备选计划）与结果组装。
适用于单线程和线程池环境，总是返回 CompressionResult 而不是抛出异常。
"""

from ..exceptions import (
    EncodeError,
    ErrorHandler,
    FileTooLargeError,
    UnsupportedFormatError,
)
from ..models.compression_config import CompressionRequest, EncodingPlan, UploadedFile
from ..models.compression_result import CompressionResult
from ..models.image_metadata import ImageMetadata
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from ..utils.naming_helpers import FileNamingStrategy
from .codec import EncodedImage, PillowCodec
from .planner import CompressionPlanner


logger = get_logger()


def process_file(
    upload: UploadedFile,
    request: CompressionRequest,
    index: int = 0,
    stem: str | None = None,
    planner: CompressionPlanner | None = None,
    codec: PillowCodec | None = None,
) -> CompressionResult:
    """处理单个文件压缩

    Args:
        upload: 上传的文件
        request: 压缩请求
        index: 在批次中的输入序号
        stem: 预先分配的唯一文件名主体，None 时从文件名推导
        planner: 压缩规划器
        codec: 编解码器

    Returns:
        CompressionResult: 压缩结果
    """
    planner = planner or CompressionPlanner()
    codec = codec or PillowCodec()
    stem = stem or FileNamingStrategy.safe_stem(upload.name)

    try:
        _validate_upload(upload, request)
        metadata = codec.probe(upload.data)
        plan = planner.plan(metadata, request)
        encoded, used_plan, used_fallback = _encode_with_fallback(
            codec, upload, plan
        )
        return _create_success_result(
            upload, index, stem, metadata, used_plan, encoded, used_fallback
        )

    except Exception as e:
        # 统一的异常处理，确保总是返回 CompressionResult
        return ErrorHandler.handle_compression_error(
            e, upload.name, upload.original_size, index, "图像压缩引擎"
        )


def _validate_upload(upload: UploadedFile, request: CompressionRequest) -> None:
    """单文件校验：先检查大小，再检查声明的媒体类型"""
    if upload.original_size > request.max_file_size:
        raise FileTooLargeError(
            MessageFormatter.file_too_large(
                upload.name, upload.original_size, request.max_file_size
            ),
            upload.name,
        )

    content_type = (upload.content_type or "").strip().lower()
    if content_type and not content_type.startswith("image/"):
        raise UnsupportedFormatError(
            MessageFormatter.unsupported_type(upload.name, content_type), upload.name
        )


def _encode_with_fallback(
    codec: PillowCodec, upload: UploadedFile, plan: EncodingPlan
) -> tuple[EncodedImage, EncodingPlan, bool]:
    """依次尝试主计划与备选计划

    Returns:
        tuple: (编码结果, 实际使用的计划, 是否使用了备选计划)
    """
    errors: list[str] = []

    for attempt, candidate in enumerate(plan.candidates()):
        try:
            return codec.encode(upload.data, candidate), candidate, attempt > 0
        except EncodeError as e:
            logger.warning(
                MessageFormatter.operation_failed(
                    f"{candidate.target_format.value.upper()}编码", upload.name, e
                )
            )
            errors.append(e.message)

    raise EncodeError(f"所有编码方案均失败: {'; '.join(errors)}", upload.name)


def _create_success_result(
    upload: UploadedFile,
    index: int,
    stem: str,
    metadata: ImageMetadata,
    plan: EncodingPlan,
    encoded: EncodedImage,
    used_fallback: bool,
) -> CompressionResult:
    """组装成功结果，同格式且未缩放时不接受变大的输出"""
    original_size = upload.original_size
    data = encoded.data

    if (
        encoded.format.value == metadata.format.value
        and not encoded.was_resized
        and len(data) >= original_size
    ):
        logger.info(
            f"重新编码未能减小 {upload.name} ({len(data)} >= {original_size} bytes)，"
            f"保留原文件"
        )
        data = upload.data
    elif len(data) > original_size:
        # 格式转换由规划决定，输出照常返回，只记录体积增大
        logger.warning(
            f"{upload.name} 转换为{encoded.format.value.upper()}后体积增大 "
            f"({original_size} -> {len(data)} bytes)"
        )

    return CompressionResult(
        index=index,
        original_name=upload.name,
        original_size=original_size,
        success=True,
        output_name=FileNamingStrategy.output_name(stem, encoded.format),
        output_format=encoded.format,
        compressed_size=len(data),
        compressed_bytes=data,
        quality_used=plan.quality,
        used_fallback=used_fallback,
        was_resized=encoded.was_resized,
        original_dimensions=encoded.original_dimensions,
        final_dimensions=encoded.final_dimensions,
        plan_reason=plan.reason,
    )
