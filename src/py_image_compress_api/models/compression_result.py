"""压缩结果模型。

定义单文件压缩结果与批量处理结果的数据结构。
"""

from typing import Any

from humanize import naturalsize
from pydantic import BaseModel, Field

from .constants import FailureReason, OutputFormat


class BaseResult(BaseModel):
    """结果基类，包含通用字段和方法"""

    success: bool = Field(description="是否成功")
    error: str | None = Field(None, description="错误信息")

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """格式化文件大小为人类可读格式"""
        return naturalsize(size_bytes, binary=True)


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """压缩比例（百分比），原始大小为 0 时定义为 0"""
    if original_size <= 0:
        return 0.0
    return (original_size - compressed_size) / original_size * 100


class CompressionResult(BaseResult):
    """单个文件的处理结果"""

    index: int = Field(0, ge=0, description="在批次中的输入序号")
    original_name: str = Field(description="原始文件名")
    original_size: int = Field(description="原始文件大小（字节）")
    failure_reason: FailureReason | None = Field(None, description="失败原因")

    # 成功时的输出信息
    output_name: str | None = Field(None, description="输出文件名")
    output_format: OutputFormat | None = Field(None, description="输出格式")
    compressed_size: int = Field(0, description="压缩后文件大小（字节）")
    compressed_bytes: bytes | None = Field(
        None, repr=False, exclude=True, description="压缩后的字节"
    )

    # 处理信息
    quality_used: int | None = Field(None, description="使用的质量值")
    used_fallback: bool = Field(False, description="是否使用了备选计划")
    was_resized: bool = Field(False, description="是否调整了尺寸")
    original_dimensions: tuple[int, int] | None = Field(None, description="原始尺寸")
    final_dimensions: tuple[int, int] | None = Field(None, description="最终尺寸")
    plan_reason: str | None = Field(None, description="规划决策原因")

    def get_size_saved(self) -> int:
        """节省的字节数"""
        if not self.success:
            return 0
        return max(0, self.original_size - self.compressed_size)

    def get_compression_ratio(self) -> float:
        """压缩比例（百分比）"""
        if not self.success:
            return 0.0
        return compression_ratio(self.original_size, self.compressed_size)

    def get_original_size_human(self) -> str:
        """人类可读的原始文件大小"""
        return self.format_size(self.original_size)

    def get_compressed_size_human(self) -> str:
        """人类可读的压缩后文件大小"""
        return self.format_size(self.compressed_size)

    def get_summary(self) -> str:
        """压缩结果摘要"""
        if not self.success:
            return f"失败: {self.error}"

        return (
            f"{self.get_original_size_human()} → {self.get_compressed_size_human()} "
            f"({self.get_compression_ratio():.1f}% 压缩)"
        )

    def to_status(self) -> dict[str, Any]:
        """单文件状态，用于响应头和工具返回值"""
        status: dict[str, Any] = {
            "name": self.original_name,
            "status": "success" if self.success else "failure",
            "originalSize": self.original_size,
        }
        if self.success:
            status.update(
                {
                    "outputName": self.output_name,
                    "outputFormat": self.output_format.value
                    if self.output_format
                    else None,
                    "compressedSize": self.compressed_size,
                    "compressionRatio": round(self.get_compression_ratio(), 1),
                }
            )
        else:
            status.update(
                {
                    "reason": self.failure_reason.value
                    if self.failure_reason
                    else None,
                    "error": self.error,
                }
            )
        return status


class ResultCollection(BaseResult):
    """结果集合基类，提供通用的统计方法"""

    results: list[Any] = Field(description="结果列表")

    def get_successful_items(self) -> list[Any]:
        """获取成功的结果项"""
        return [r for r in self.results if getattr(r, "success", False)]

    def get_failed_items(self) -> list[Any]:
        """获取失败的结果项"""
        return [r for r in self.results if not getattr(r, "success", False)]

    def get_total_count(self) -> int:
        """获取总数量"""
        return len(self.results)

    def get_success_count(self) -> int:
        """获取成功数量"""
        return len(self.get_successful_items())

    def get_failure_count(self) -> int:
        """获取失败数量"""
        return len(self.get_failed_items())

    def get_success_rate(self) -> float:
        """获取成功率（百分比）"""
        total = self.get_total_count()
        if total == 0:
            return 0.0
        return (self.get_success_count() / total) * 100


class BatchResult(ResultCollection):
    """批量处理结果

    results 与输入顺序一致；汇总大小只统计成功的文件，
    失败文件从未被压缩，不参与压缩比计算。
    """

    results: list[CompressionResult] = Field(description="所有文件的处理结果")
    timed_out: bool = Field(False, description="是否因超时提前返回")
    aborted: bool = Field(False, description="是否因内部错误中止")

    @property
    def total_original_bytes(self) -> int:
        return self.get_total_original_size()

    @property
    def total_compressed_bytes(self) -> int:
        return self.get_total_compressed_size()

    @property
    def success_count(self) -> int:
        return self.get_success_count()

    @property
    def failure_count(self) -> int:
        return self.get_failure_count()

    def get_total_original_size(self) -> int:
        """成功文件的原始大小之和"""
        return sum(r.original_size for r in self.results if r.success)

    def get_total_compressed_size(self) -> int:
        """成功文件的压缩后大小之和"""
        return sum(r.compressed_size for r in self.results if r.success)

    def get_total_size_saved(self) -> int:
        """总节省大小"""
        return sum(r.get_size_saved() for r in self.results if r.success)

    def get_overall_compression_ratio(self) -> float:
        """整体压缩比例，没有成功文件时为 0"""
        return compression_ratio(
            self.get_total_original_size(), self.get_total_compressed_size()
        )

    def to_status_list(self) -> list[dict[str, Any]]:
        """按输入顺序列出每个文件的状态"""
        return [r.to_status() for r in self.results]

    def get_summary(self) -> str:
        """批量处理摘要"""
        total = self.get_total_count()
        successful = self.get_success_count()
        success_rate = self.get_success_rate()
        size_saved = self.format_size(self.get_total_size_saved())

        summary = (
            f"处理 {successful}/{total} 个文件 "
            f"(成功率 {success_rate:.1f}%), "
            f"总节省 {size_saved}"
        )
        if self.timed_out:
            summary += "，批处理超时"
        if self.aborted:
            summary += "，批处理因内部错误中止"
        return summary
