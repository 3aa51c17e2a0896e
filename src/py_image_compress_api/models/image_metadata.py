"""图像元数据模型。

由编解码器探测得到的只读图像信息，是压缩规划的唯一图像输入。
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .constants import ImageFormat, ImageFormats


class ImageMetadata(BaseModel):
    """图片元数据"""

    model_config = ConfigDict(frozen=True)

    format: ImageFormat = Field(description="源图片格式")
    width: int = Field(gt=0, description="图片宽度")
    height: int = Field(gt=0, description="图片高度")
    has_alpha: bool = Field(default=False, description="像素格式是否携带透明通道")
    mode: str = Field(default="RGB", description="颜色模式")
    frame_count: int = Field(default=1, ge=1, description="帧数")

    @computed_field
    def is_animated(self) -> bool:
        """是否为动画图片"""
        return self.frame_count > 1

    @computed_field
    def total_pixels(self) -> int:
        """总像素数"""
        return self.width * self.height

    @computed_field
    def aspect_ratio(self) -> float:
        """宽高比"""
        return self.width / self.height

    @property
    def is_recognized(self) -> bool:
        """是否为规划器识别的栅格格式"""
        return self.format in ImageFormats.RECOGNIZED_RASTER

    def get_total_pixels_human(self) -> str:
        """人性化显示总像素数"""
        from humanize import intword

        return intword(self.total_pixels)
