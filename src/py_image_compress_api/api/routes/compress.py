"""压缩接口。

POST /api/compress 处理单个文件，POST /api/compress/batch 处理 file_0..file_{N-1}。
"""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from ... import __version__
from ...compressor import ImageCompressor
from ...exceptions import NoInputError, ValidationError
from ...models.compression_config import CompressionRequest, UploadedFile
from ...utils.archive import ZipArchiveSink
from ...utils.logging_helpers import get_logger
from ...utils.message_formatter import MessageFormatter, format_validation_error
from ..models import ErrorResponse, HealthResponse
from ..responses import archive_response, single_file_response


logger = get_logger()

router = APIRouter(prefix="/api")

# 请求级错误的统一响应体，用于接口文档
ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_compressor(request: Request) -> ImageCompressor:
    """应用级共享的压缩器"""
    return request.app.state.compressor


async def read_upload(upload: StarletteUploadFile, max_file_size: int) -> UploadedFile:
    """读取上传文件，已知超过大小上限时不读取内容"""
    name = upload.filename or "image"
    if upload.size is not None and upload.size > max_file_size:
        logger.debug(f"跳过读取过大的文件: {name} ({upload.size} bytes)")
        return UploadedFile(
            name=name, data=b"", content_type=upload.content_type, size=upload.size
        )

    data = await upload.read()
    return UploadedFile(name=name, data=data, content_type=upload.content_type)


def _form_text(value: object, field: str) -> str | None:
    """表单中的文本字段，文件类型的值视为非法"""
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(format_validation_error(field, type(value).__name__, "文本"))


async def _compress_single(
    compressor: ImageCompressor, upload: UploadedFile, request: CompressionRequest
) -> Response:
    result = await run_in_threadpool(compressor.compress_upload, upload, request)
    if result.success:
        logger.info(f"{upload.name}: {result.get_summary()}")
    return single_file_response(result)


@router.post("/compress", responses=ERROR_RESPONSES)
async def compress_file(
    file: UploadFile | None = File(None, description="图片文件"),
    quality: str | None = Form("80", description="质量 1-100 或 low/medium/high/max"),
    compressionType: str | None = Form("lossy", description="lossy/lossless/custom"),
    format: str | None = Form(None, description="输出格式 jpeg/png/webp"),
    compressor: ImageCompressor = Depends(get_compressor),
) -> Response:
    """压缩单个图片，返回压缩后的字节"""
    if file is None:
        raise NoInputError(MessageFormatter.no_input())

    request = compressor.build_request(quality, compressionType, format)
    upload = await read_upload(file, request.max_file_size)
    return await _compress_single(compressor, upload, request)


@router.post("/compress/batch", responses=ERROR_RESPONSES)
async def compress_batch(
    http_request: Request,
    compressor: ImageCompressor = Depends(get_compressor),
) -> Response:
    """批量压缩 file_0..file_{N-1}，多于一个文件时返回 zip 压缩包"""
    async with http_request.form() as form:
        # 文件数在读取任何文件内容之前校验
        raw_count = form.get("fileCount")
        if raw_count is None:
            count_value: str | int | None = sum(
                1 for key in form.keys() if key.startswith("file_")
            )
        else:
            count_value = _form_text(raw_count, "fileCount")
        count = compressor.request_builder.parse_file_count(count_value)

        request = compressor.build_request(
            _form_text(form.get("quality"), "quality"),
            _form_text(form.get("compressionType"), "compressionType"),
            _form_text(form.get("format"), "format"),
        )

        uploads: list[UploadedFile] = []
        for index in range(count):
            field = f"file_{index}"
            item = form.get(field)
            if not isinstance(item, StarletteUploadFile):
                # 声明的文件缺失时整个请求无效，避免结果列表少于 fileCount
                raise ValidationError(
                    format_validation_error(field, type(item).__name__, "上传文件")
                )
            uploads.append(await read_upload(item, request.max_file_size))

    if len(uploads) == 1:
        return await _compress_single(compressor, uploads[0], request)

    with ZipArchiveSink() as sink:
        batch = await run_in_threadpool(
            compressor.compress_batch, uploads, request, sink
        )
    archive = sink.close()

    logger.info(batch.get_summary())
    return archive_response(batch, archive)


@router.get("/health", response_model=HealthResponse)
async def health_check(
    compressor: ImageCompressor = Depends(get_compressor),
) -> HealthResponse:
    """健康检查"""
    return HealthResponse(
        status="ok",
        version=__version__,
        max_file_size=compressor.config.limits.MAX_FILE_SIZE_BYTES,
        max_batch_files=compressor.config.limits.MAX_BATCH_FILES,
    )
