"""压缩包输出模块。

把一组 (文件名, 字节) 写入单个 zip 字节流，条目名保持调用方给定的原样。
"""

import threading
import zipfile
from io import BytesIO

from .logging_helpers import get_logger


logger = get_logger()


class ZipArchiveSink:
    """内存 zip 写入器

    每个条目写入后即可释放调用方持有的缓冲区；图片已经是压缩格式，
    条目使用 ZIP_STORED 避免无意义的二次压缩。
    """

    def __init__(self, compression: int = zipfile.ZIP_STORED) -> None:
        self._buffer = BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, mode="w", compression=compression)
        self._lock = threading.Lock()
        self._names: list[str] = []
        self._closed = False

    @property
    def names(self) -> list[str]:
        """已写入的条目名"""
        return list(self._names)

    def add(self, name: str, data: bytes) -> None:
        """写入一个条目"""
        with self._lock:
            if self._closed:
                raise RuntimeError("压缩包已关闭，无法继续写入")
            self._zip.writestr(name, data)
            self._names.append(name)
        logger.debug(f"写入压缩包条目: {name} ({len(data)} bytes)")

    def close(self) -> bytes:
        """结束写入并返回压缩包字节"""
        with self._lock:
            if not self._closed:
                self._zip.close()
                self._closed = True
        return self._buffer.getvalue()

    def __enter__(self) -> "ZipArchiveSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


def build_archive(entries: list[tuple[str, bytes]]) -> bytes:
    """一次性把条目打包为 zip 字节"""
    with ZipArchiveSink() as sink:
        for name, data in entries:
            sink.add(name, data)
    return sink.close()
