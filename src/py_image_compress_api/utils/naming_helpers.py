"""文件命名工具模块。

提供统一的输出文件命名策略，保证同一批次内的名字唯一。
"""

import itertools
from collections.abc import Iterable
from pathlib import PurePosixPath, PureWindowsPath

from ..models.constants import OutputFormat, get_extension


OUTPUT_PREFIX = "compressed_"
DEFAULT_STEM = "image"


class FileNamingStrategy:
    """文件命名策略类"""

    @staticmethod
    def safe_stem(filename: str) -> str:
        """提取不含目录和扩展名的文件名主体

        上传的文件名可能带有客户端路径（包括 Windows 风格），只保留最后一段。
        """
        base = PureWindowsPath(PurePosixPath(filename).name).name
        stem = base.rsplit(".", 1)[0] if "." in base[1:] else base
        stem = stem.strip().replace('"', "").replace("\\", "")
        return stem or DEFAULT_STEM

    @staticmethod
    def output_name(stem: str, output_format: OutputFormat) -> str:
        """生成输出文件名: compressed_<stem>.<ext>"""
        return f"{OUTPUT_PREFIX}{stem}{get_extension(output_format)}"

    @staticmethod
    def unique_stems(filenames: Iterable[str]) -> list[str]:
        """按输入顺序为每个文件分配唯一的主体名

        重名时追加 _1、_2 等数字后缀，结果只依赖输入顺序。
        """
        used: set[str] = set()
        stems: list[str] = []

        for filename in filenames:
            base = FileNamingStrategy.safe_stem(filename)
            candidate = base
            if candidate.lower() in used:
                # 使用 itertools.count 生成无限序列，找到第一个未占用的后缀
                for counter in itertools.count(1):
                    candidate = f"{base}_{counter}"
                    if candidate.lower() not in used:
                        break
            used.add(candidate.lower())
            stems.append(candidate)

        return stems
