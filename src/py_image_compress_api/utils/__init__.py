"""工具模块包。

提供纯工具函数，不包含业务逻辑。
"""

from .archive import ZipArchiveSink, build_archive
from .file_helpers import find_image_files, guess_content_type, load_upload
from .logging_helpers import configure_logging, get_logger
from .message_formatter import MessageFormatter, format_validation_error
from .naming_helpers import FileNamingStrategy


__all__ = [
    "FileNamingStrategy",
    "MessageFormatter",
    "ZipArchiveSink",
    "build_archive",
    "configure_logging",
    "find_image_files",
    "format_validation_error",
    "get_logger",
    "guess_content_type",
    "load_upload",
]
