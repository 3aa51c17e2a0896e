"""工具函数模块。

本地文件的查找与读取，供 MCP 工具把磁盘文件送入压缩流水线。
"""

import mimetypes
from collections.abc import Iterator
from pathlib import Path

from PIL import Image

from ..models.compression_config import UploadedFile
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()


def find_image_files(
    directory: str | Path,
    recursive: bool = True,
    exclude_dirs: list[str] | None = None,
) -> Iterator[Path]:
    """查找目录中的图像文件。

    Args:
        directory: 搜索目录
        recursive: 是否递归搜索子目录
        exclude_dirs: 要排除的目录名列表

    Yields:
        Path: 图像文件路径，按路径排序
    """
    directory = Path(directory)
    exclude_dirs = exclude_dirs or []

    if not directory.is_dir():
        logger.warning(MessageFormatter.file_not_found(directory))
        return

    pattern = "**/*" if recursive else "*"
    supported_extensions = set(Image.registered_extensions().keys()) | {".svg"}

    for file_path in sorted(directory.glob(pattern)):
        if (
            file_path.is_file()
            and file_path.suffix.lower() in supported_extensions
            and not any(exclude_dir in file_path.parts for exclude_dir in exclude_dirs)
        ):
            yield file_path


def guess_content_type(file_path: str | Path) -> str | None:
    """根据扩展名猜测媒体类型"""
    content_type, _ = mimetypes.guess_type(str(file_path))
    return content_type


def load_upload(file_path: str | Path, max_file_size: int | None = None) -> UploadedFile:
    """把本地文件读取为上传文件

    超过大小上限的文件不读取内容，只记录大小，由流水线判定为过大。
    """
    file_path = Path(file_path)
    size = file_path.stat().st_size

    if max_file_size is not None and size > max_file_size:
        return UploadedFile(
            name=file_path.name,
            data=b"",
            content_type=guess_content_type(file_path),
            size=size,
        )

    return UploadedFile(
        name=file_path.name,
        data=file_path.read_bytes(),
        content_type=guess_content_type(file_path),
    )
