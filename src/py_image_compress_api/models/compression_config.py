"""压缩配置模型。

定义压缩请求、规划器可调参数以及规划器输出的编码计划。
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    ChromaSubsampling,
    OutputFormat,
    QualityDefaults,
    ValidationLimits,
    clamp_quality,
)


class CompressionMode(str, Enum):
    """压缩模式枚举"""

    LOSSY = "lossy"  # 有损压缩
    LOSSLESS = "lossless"  # 无损压缩
    CUSTOM = "custom"  # 智能模式，直接使用用户质量


class PlannerSettings(BaseModel):
    """规划器可调参数

    所有数值常量集中在这里，随请求传入规划器，避免散落在各分支中。
    """

    model_config = ConfigDict(frozen=True)

    max_dimension: int = Field(1920, gt=0, description="有损模式的最大边长")
    lossy_quality_offset: int = Field(10, ge=0, le=99, description="有损模式质量偏移")
    quality_floor: int = Field(10, ge=1, le=100, description="偏移后的质量下限")
    lossless_jpeg_quality: int = Field(92, ge=90, le=100, description="无损模式JPEG质量")
    png_compress_level: int = Field(9, ge=0, le=9, description="PNG压缩级别")
    webp_method: int = Field(6, ge=0, le=6, description="WebP压缩努力程度")
    min_colors: int = Field(16, ge=2, le=256, description="调色板最少颜色数")
    max_colors: int = Field(256, ge=2, le=256, description="调色板最多颜色数")
    flatten_background: tuple[int, int, int] = Field(
        (255, 255, 255), description="丢弃透明度时的背景色"
    )
    prefer_webp_for_alpha: bool = Field(True, description="有损模式透明图优先WebP")


class CompressionRequest(BaseModel):
    """压缩请求，批次内所有文件共用"""

    model_config = ConfigDict(frozen=True)

    quality: int = Field(QualityDefaults.DEFAULT, description="压缩质量 1-100")
    mode: CompressionMode = Field(CompressionMode.LOSSY, description="压缩模式")
    explicit_format: OutputFormat | None = Field(None, description="显式目标格式")
    max_file_size: int = Field(
        ValidationLimits.MAX_FILE_SIZE, gt=0, description="单文件大小上限（字节）"
    )
    max_batch_files: int = Field(
        ValidationLimits.MAX_BATCH_FILES, gt=0, description="批量文件数上限"
    )
    planner: PlannerSettings = Field(default_factory=PlannerSettings)

    @field_validator("quality", mode="before")
    @classmethod
    def clamp_quality_value(cls, v: int) -> int:
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError(f"质量值必须是整数，得到: {v!r}")
        return clamp_quality(v)


class ResizeBounds(BaseModel):
    """尺寸上限，保持宽高比放入框内，不放大"""

    model_config = ConfigDict(frozen=True)

    max_width: int = Field(gt=0, description="最大宽度")
    max_height: int = Field(gt=0, description="最大高度")

    def fit(self, width: int, height: int) -> tuple[int, int]:
        """计算放入边界后的尺寸"""
        return compute_resized_dimensions(width, height, self)


def compute_resized_dimensions(
    width: int, height: int, bounds: ResizeBounds | None
) -> tuple[int, int]:
    """按同一比例缩放宽高使其放入边界，向下取整，永不放大"""
    if bounds is None:
        return width, height

    if width <= bounds.max_width and height <= bounds.max_height:
        return width, height

    # 整数运算，避免浮点误差让受限边少一个像素
    if bounds.max_width * height <= bounds.max_height * width:
        return bounds.max_width, max(1, height * bounds.max_width // width)
    return max(1, width * bounds.max_height // height), bounds.max_height


class JpegParams(BaseModel):
    """JPEG 编码参数"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["jpeg"] = "jpeg"
    quality: int = Field(ge=1, le=100)
    subsampling: ChromaSubsampling = ChromaSubsampling.S420
    progressive: bool = True
    optimize: bool = True


class PngParams(BaseModel):
    """PNG 编码参数"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["png"] = "png"
    compress_level: int = Field(9, ge=0, le=9)
    palette: bool = False
    colors: int | None = Field(None, ge=2, le=256, description="调色板颜色数")
    dither: float = Field(0.0, ge=0.0, le=1.0, description="抖动强度")
    optimize: bool = True

    @property
    def quality(self) -> int | None:
        """PNG 没有质量参数，调色板模式下以颜色数体现"""
        return None


class WebpParams(BaseModel):
    """WebP 编码参数"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["webp"] = "webp"
    quality: int = Field(ge=1, le=100)
    alpha_quality: int | None = Field(None, ge=1, le=100)
    method: int = Field(6, ge=0, le=6)
    lossless: bool = False


EncoderParams = Annotated[
    JpegParams | PngParams | WebpParams, Field(discriminator="kind")
]


class EncodingPlan(BaseModel):
    """编码计划，规划器的输出

    fallback 是显式声明的备选计划：主计划编码失败时由流水线依次尝试。
    """

    model_config = ConfigDict(frozen=True)

    target_format: OutputFormat = Field(description="目标格式")
    resize_bounds: ResizeBounds | None = Field(None, description="尺寸上限")
    encoder_params: EncoderParams = Field(description="编码参数")
    flatten_background: tuple[int, int, int] | None = Field(
        None, description="丢弃透明度时合成的背景色"
    )
    fallback: "EncodingPlan | None" = Field(None, description="备选计划")
    reason: str = Field(default="", description="决策原因")

    @property
    def quality(self) -> int | None:
        """编码器实际使用的质量值"""
        return self.encoder_params.quality

    def candidates(self) -> list["EncodingPlan"]:
        """主计划及其备选计划链"""
        chain: list[EncodingPlan] = []
        current: EncodingPlan | None = self
        while current is not None:
            chain.append(current)
            current = current.fallback
        return chain


EncodingPlan.model_rebuild()


class UploadedFile(BaseModel):
    """上传的单个文件"""

    name: str = Field(description="原始文件名")
    data: bytes = Field(repr=False, description="原始字节")
    content_type: str | None = Field(None, description="声明的媒体类型")
    size: int | None = Field(None, ge=0, description="声明的大小（未读取内容时使用）")

    @property
    def original_size(self) -> int:
        """原始大小"""
        return self.size if self.size is not None else len(self.data)
