"""图片信息提取器。

从内存字节中探测图片格式、尺寸与透明度，输出规划器使用的只读元数据。
"""

from io import BytesIO

from PIL import ExifTags, Image

from ..exceptions import UnsupportedFormatError, handle_image_errors
from ..models.constants import source_format_from_pillow
from ..models.image_metadata import ImageMetadata
from ..utils.logging_helpers import get_logger


logger = get_logger()

# SVG 是文本格式，Pillow 无法解码，只需识别出来
_SVG_SNIFF_BYTES = 1024


def looks_like_svg(data: bytes) -> bool:
    """根据文件头判断是否为 SVG 文本"""
    head = data[:_SVG_SNIFF_BYTES].lstrip().lower()
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:].lstrip()
    return head.startswith(b"<svg") or (
        head.startswith(b"<?xml") and b"<svg" in head
    )


class ImageInfoExtractor:
    """图片信息提取器

    只读取文件头和像素格式，不解码完整像素数据。
    """

    @handle_image_errors("图片探测")
    def probe(self, data: bytes) -> ImageMetadata:
        """探测图片元数据

        Args:
            data: 原始字节

        Returns:
            ImageMetadata: 图片元数据

        Raises:
            UnsupportedFormatError: 不是可编码的栅格图片（包括 SVG）
        """
        if not data:
            raise UnsupportedFormatError("文件内容为空")

        if looks_like_svg(data):
            # SVG 需要矢量渲染，编解码器不支持
            raise UnsupportedFormatError("SVG 矢量图不支持压缩")

        try:
            with Image.open(BytesIO(data)) as img:
                width, height = self._oriented_size(img)
                metadata = ImageMetadata(
                    format=source_format_from_pillow(img.format),
                    width=width,
                    height=height,
                    has_alpha=self._detect_transparency(img),
                    mode=img.mode,
                    frame_count=getattr(img, "n_frames", 1),
                )
        except (OSError, SyntaxError) as e:
            # 文件头损坏或不是图片，都视为不支持的类型
            raise UnsupportedFormatError(f"无法识别的图像格式: {e}") from e

        logger.debug(
            f"探测结果: {metadata.format.value} {width}x{height} "
            f"mode={metadata.mode} alpha={metadata.has_alpha}"
        )
        return metadata

    def _oriented_size(self, img: Image.Image) -> tuple[int, int]:
        """考虑EXIF旋转后的显示尺寸，与编码时 exif_transpose 的结果一致"""
        width, height = img.size
        orientation = img.getexif().get(ExifTags.Base.Orientation, 1)
        if orientation in (5, 6, 7, 8):
            return height, width
        return width, height

    def _detect_transparency(self, img: Image.Image) -> bool:
        """检测图片是否有透明度"""
        # 这些模式天然携带透明通道
        if img.mode in ("RGBA", "LA", "PA", "RGBa", "La"):
            return True

        # 调色板或灰度图的透明色索引
        return "transparency" in img.info


def probe_image(data: bytes) -> ImageMetadata:
    """便捷函数：探测图片元数据"""
    return ImageInfoExtractor().probe(data)
