"""压缩规划模块。

根据源图片特征与请求参数决定目标格式、尺寸上限与编码参数。
规划是 (ImageMetadata, CompressionRequest) 的纯函数：不读取全局配置，不抛出异常。
"""

from ..models.compression_config import (
    CompressionMode,
    CompressionRequest,
    EncodingPlan,
    JpegParams,
    PlannerSettings,
    PngParams,
    ResizeBounds,
    WebpParams,
)
from ..models.constants import (
    ChromaSubsampling,
    ImageFormat,
    OutputFormat,
    clamp_quality,
    supports_transparency,
)
from ..models.image_metadata import ImageMetadata
from ..utils.logging_helpers import get_logger


logger = get_logger()


class CompressionPlanner:
    """压缩规划器

    规则按优先级：显式格式 > 无损 > 有损 > 智能（custom）。
    """

    def plan(
        self, metadata: ImageMetadata, request: CompressionRequest
    ) -> EncodingPlan:
        """生成编码计划

        Args:
            metadata: 源图片元数据
            request: 压缩请求

        Returns:
            EncodingPlan: 编码计划，可能带有备选计划
        """
        if request.explicit_format is not None:
            plan = self._plan_explicit(metadata, request)
        elif self._is_unrecognized(metadata, request):
            plan = self._plan_unrecognized(metadata, request)
        else:
            match request.mode:
                case CompressionMode.LOSSLESS:
                    plan = self._plan_lossless(metadata, request)
                case CompressionMode.LOSSY:
                    plan = self._plan_lossy(metadata, request)
                case CompressionMode.CUSTOM:
                    plan = self._plan_custom(metadata, request)

        logger.debug(
            f"压缩决策: {metadata.format.value} -> {plan.target_format.value}, "
            f"原因: {plan.reason}"
        )
        return plan

    def _is_unrecognized(
        self, metadata: ImageMetadata, request: CompressionRequest
    ) -> bool:
        """未识别且不透明的源图片；无损模式仍按规则转为PNG"""
        return (
            not metadata.is_recognized
            and not metadata.has_alpha
            and request.mode is not CompressionMode.LOSSLESS
        )

    def _plan_explicit(
        self, metadata: ImageMetadata, request: CompressionRequest
    ) -> EncodingPlan:
        """用户指定了输出格式，按请求质量直接编码，不缩放"""
        target = request.explicit_format
        settings = request.planner
        quality = request.quality

        match target:
            case OutputFormat.JPEG:
                params = jpeg_params(quality)
            case OutputFormat.PNG:
                params = png_params(quality, settings, palette=quality < 100)
            case OutputFormat.WEBP:
                params = webp_params(quality, settings, metadata.has_alpha)

        if metadata.has_alpha and not supports_transparency(target):
            return EncodingPlan(
                target_format=target,
                encoder_params=params,
                flatten_background=settings.flatten_background,
                reason=f"用户指定{target.value.upper()}，透明区域合成到背景色",
            )

        return EncodingPlan(
            target_format=target,
            encoder_params=params,
            reason=f"用户指定{target.value.upper()}格式",
        )

    def _plan_unrecognized(
        self, metadata: ImageMetadata, request: CompressionRequest
    ) -> EncodingPlan:
        """无法识别的格式按请求质量重新编码为JPEG"""
        return EncodingPlan(
            target_format=OutputFormat.JPEG,
            encoder_params=jpeg_params(request.quality),
            reason=f"未识别的源格式 {metadata.format.value}，按请求质量重新编码为JPEG",
        )

    def _plan_lossless(
        self, metadata: ImageMetadata, request: CompressionRequest
    ) -> EncodingPlan:
        """无损模式：保持 PNG/JPEG 原格式，其余转为PNG，从不缩放"""
        settings = request.planner

        if metadata.format is ImageFormat.JPEG:
            quality = clamp_quality(max(90, settings.lossless_jpeg_quality))
            return EncodingPlan(
                target_format=OutputFormat.JPEG,
                encoder_params=JpegParams(
                    quality=quality,
                    subsampling=ChromaSubsampling.S444,
                    progressive=True,
                ),
                reason="无损模式，JPEG保持原格式并使用高质量重新编码",
            )

        reason = (
            "无损模式，PNG使用最高压缩级别"
            if metadata.format is ImageFormat.PNG
            else f"无损模式，{metadata.format.value.upper()}转换为PNG"
        )
        return EncodingPlan(
            target_format=OutputFormat.PNG,
            encoder_params=png_params(100, settings, palette=False),
            reason=reason,
        )

    def _plan_lossy(
        self, metadata: ImageMetadata, request: CompressionRequest
    ) -> EncodingPlan:
        """有损模式：质量下调偏移量，透明图优先WebP，其余JPEG"""
        settings = request.planner
        quality = lossy_quality(request.quality, settings)
        bounds = resize_bounds_for(metadata, settings)

        if metadata.has_alpha:
            return self._plan_alpha(
                quality, settings, bounds, settings.prefer_webp_for_alpha, "有损模式"
            )

        return EncodingPlan(
            target_format=OutputFormat.JPEG,
            resize_bounds=bounds,
            encoder_params=jpeg_params(quality),
            reason=f"有损模式，无透明度，JPEG质量 {quality}",
        )

    def _plan_custom(
        self, metadata: ImageMetadata, request: CompressionRequest
    ) -> EncodingPlan:
        """智能模式：直接使用请求质量，透明图总是WebP"""
        settings = request.planner
        quality = request.quality
        bounds = resize_bounds_for(metadata, settings)

        if metadata.has_alpha:
            return self._plan_alpha(quality, settings, bounds, True, "智能模式")

        return EncodingPlan(
            target_format=OutputFormat.JPEG,
            resize_bounds=bounds,
            encoder_params=jpeg_params(quality),
            reason=f"智能模式，无透明度，JPEG质量 {quality}",
        )

    def _plan_alpha(
        self,
        quality: int,
        settings: PlannerSettings,
        bounds: ResizeBounds | None,
        prefer_webp: bool,
        label: str,
    ) -> EncodingPlan:
        """透明图片：WebP 与 PNG 调色板互为备选，两者都保留透明度"""
        webp_plan = EncodingPlan(
            target_format=OutputFormat.WEBP,
            resize_bounds=bounds,
            encoder_params=webp_params(quality, settings, True),
            reason=f"{label}，透明图片使用WebP质量 {quality}",
        )
        png_plan = EncodingPlan(
            target_format=OutputFormat.PNG,
            resize_bounds=bounds,
            encoder_params=png_params(quality, settings, palette=True),
            reason=f"{label}，透明图片使用PNG调色板",
        )

        if prefer_webp:
            return webp_plan.model_copy(update={"fallback": png_plan})
        return png_plan.model_copy(update={"fallback": webp_plan})


# ========================================================================
# 参数计算
# ========================================================================


def lossy_quality(quality: int, settings: PlannerSettings) -> int:
    """有损模式的实际质量：下调偏移量，不低于下限"""
    return clamp_quality(
        max(quality - settings.lossy_quality_offset, settings.quality_floor)
    )


def jpeg_subsampling(quality: int) -> ChromaSubsampling:
    """高质量保留全部色度信息"""
    if quality >= 90:
        return ChromaSubsampling.S444
    if quality >= 80:
        return ChromaSubsampling.S422
    return ChromaSubsampling.S420


def jpeg_params(quality: int) -> JpegParams:
    quality = clamp_quality(quality)
    return JpegParams(
        quality=quality,
        subsampling=jpeg_subsampling(quality),
        progressive=True,
    )


def palette_colors(quality: int, settings: PlannerSettings) -> int:
    """调色板颜色数随质量线性变化"""
    colors = round(clamp_quality(quality) / 100 * settings.max_colors)
    return max(settings.min_colors, min(settings.max_colors, colors))


def png_params(quality: int, settings: PlannerSettings, palette: bool) -> PngParams:
    if not palette:
        return PngParams(compress_level=settings.png_compress_level)

    return PngParams(
        compress_level=settings.png_compress_level,
        palette=True,
        colors=palette_colors(quality, settings),
        dither=1.0 if quality >= 50 else 0.0,
    )


def webp_alpha_quality(quality: int) -> int:
    """高质量时保持透明通道无损或接近无损"""
    if quality >= 85:
        return 100
    if quality >= 70:
        return min(100, quality + 10)
    return quality


def webp_params(
    quality: int, settings: PlannerSettings, has_alpha: bool
) -> WebpParams:
    quality = clamp_quality(quality)
    return WebpParams(
        quality=quality,
        alpha_quality=webp_alpha_quality(quality) if has_alpha else None,
        method=settings.webp_method,
    )


def resize_bounds_for(
    metadata: ImageMetadata, settings: PlannerSettings
) -> ResizeBounds | None:
    """超过最大边长时才设置尺寸上限"""
    limit = settings.max_dimension
    if metadata.width <= limit and metadata.height <= limit:
        return None
    return ResizeBounds(max_width=limit, max_height=limit)


# 默认规划器实例，无状态可共享
_default_planner = CompressionPlanner()


def plan(metadata: ImageMetadata, request: CompressionRequest) -> EncodingPlan:
    """便捷函数：生成编码计划"""
    return _default_planner.plan(metadata, request)
