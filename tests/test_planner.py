"""压缩规划测试。

规划是纯函数，直接用构造的元数据测试各分支规则与数值约束。
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from py_image_compress_api.core.planner import (
    CompressionPlanner,
    jpeg_subsampling,
    palette_colors,
    plan,
    webp_alpha_quality,
)
from py_image_compress_api.models import (
    ChromaSubsampling,
    CompressionMode,
    CompressionRequest,
    ImageFormat,
    JpegParams,
    OutputFormat,
    PlannerSettings,
    PngParams,
    ResizeBounds,
    WebpParams,
    compute_resized_dimensions,
)


def _request(quality=80, mode=CompressionMode.LOSSY, explicit_format=None, **kwargs):
    return CompressionRequest(
        quality=quality, mode=mode, explicit_format=explicit_format, **kwargs
    )


class TestLossyPlanning:
    """有损模式测试"""

    def test_png_without_alpha_becomes_jpeg(self, make_metadata):
        """不透明 PNG 转为 JPEG，质量下调偏移量"""
        result = plan(make_metadata(ImageFormat.PNG), _request(80))

        assert result.target_format == OutputFormat.JPEG
        assert isinstance(result.encoder_params, JpegParams)
        assert result.encoder_params.quality == 70
        assert result.encoder_params.progressive is True
        assert result.fallback is None
        assert result.flatten_background is None

    def test_png_with_alpha_becomes_webp_with_png_fallback(self, make_metadata):
        """透明 PNG 转为 WebP，PNG 调色板作为备选"""
        result = plan(make_metadata(ImageFormat.PNG, has_alpha=True), _request(80))

        assert result.target_format == OutputFormat.WEBP
        assert isinstance(result.encoder_params, WebpParams)
        assert result.encoder_params.alpha_quality is not None
        assert result.fallback is not None
        assert result.fallback.target_format == OutputFormat.PNG
        assert result.fallback.encoder_params.palette is True

    def test_prefer_png_for_alpha(self, make_metadata):
        """关闭 WebP 优先时 PNG 调色板为主计划"""
        request = _request(80, planner=PlannerSettings(prefer_webp_for_alpha=False))
        result = plan(make_metadata(ImageFormat.PNG, has_alpha=True), request)

        assert result.target_format == OutputFormat.PNG
        assert result.fallback.target_format == OutputFormat.WEBP

    def test_quality_floor(self, make_metadata):
        """偏移后的质量不低于下限"""
        result = plan(make_metadata(ImageFormat.JPEG), _request(5))
        assert result.encoder_params.quality == 10

    def test_large_image_gets_resize_bounds(self, make_metadata):
        result = plan(make_metadata(ImageFormat.JPEG, 4000, 3000), _request(80))
        assert result.resize_bounds == ResizeBounds(max_width=1920, max_height=1920)

    def test_small_image_has_no_resize_bounds(self, make_metadata):
        result = plan(make_metadata(ImageFormat.JPEG, 800, 600), _request(80))
        assert result.resize_bounds is None


class TestLosslessPlanning:
    """无损模式测试"""

    def test_png_stays_png_without_palette(self, make_metadata):
        result = plan(
            make_metadata(ImageFormat.PNG, has_alpha=True),
            _request(30, CompressionMode.LOSSLESS),
        )

        assert result.target_format == OutputFormat.PNG
        assert isinstance(result.encoder_params, PngParams)
        assert result.encoder_params.compress_level == 9
        assert result.encoder_params.palette is False
        assert result.resize_bounds is None

    def test_jpeg_stays_jpeg_with_high_quality(self, make_metadata):
        result = plan(
            make_metadata(ImageFormat.JPEG), _request(20, CompressionMode.LOSSLESS)
        )

        assert result.target_format == OutputFormat.JPEG
        assert result.encoder_params.quality == 92
        assert result.encoder_params.subsampling == ChromaSubsampling.S444
        assert result.encoder_params.progressive is True

    @pytest.mark.parametrize("source", [ImageFormat.WEBP, ImageFormat.GIF])
    def test_other_formats_become_png(self, make_metadata, source):
        result = plan(make_metadata(source), _request(80, CompressionMode.LOSSLESS))
        assert result.target_format == OutputFormat.PNG

    def test_never_resizes(self, make_metadata):
        result = plan(
            make_metadata(ImageFormat.PNG, 5000, 5000),
            _request(80, CompressionMode.LOSSLESS),
        )
        assert result.resize_bounds is None


class TestCustomPlanning:
    """智能模式测试"""

    def test_uses_quality_directly(self, make_metadata):
        result = plan(make_metadata(ImageFormat.PNG), _request(65, CompressionMode.CUSTOM))

        assert result.target_format == OutputFormat.JPEG
        assert result.encoder_params.quality == 65

    @pytest.mark.parametrize(
        "source", [ImageFormat.PNG, ImageFormat.WEBP, ImageFormat.GIF, ImageFormat.OTHER]
    )
    def test_alpha_always_webp(self, make_metadata, source):
        request = _request(
            65,
            CompressionMode.CUSTOM,
            planner=PlannerSettings(prefer_webp_for_alpha=False),
        )
        result = plan(make_metadata(source, has_alpha=True), request)

        assert result.target_format == OutputFormat.WEBP
        assert result.encoder_params.quality == 65


class TestExplicitFormat:
    """显式格式测试"""

    def test_jpeg_with_alpha_flattens(self, make_metadata):
        result = plan(
            make_metadata(ImageFormat.PNG, has_alpha=True),
            _request(75, explicit_format=OutputFormat.JPEG),
        )

        assert result.target_format == OutputFormat.JPEG
        assert result.flatten_background == (255, 255, 255)
        assert result.encoder_params.quality == 75
        assert result.reason

    def test_png_keeps_alpha_and_uses_palette(self, make_metadata):
        result = plan(
            make_metadata(ImageFormat.PNG, has_alpha=True),
            _request(50, explicit_format=OutputFormat.PNG),
        )

        assert result.target_format == OutputFormat.PNG
        assert result.flatten_background is None
        assert result.encoder_params.palette is True

    def test_png_at_max_quality_has_no_palette(self, make_metadata):
        result = plan(
            make_metadata(ImageFormat.JPEG),
            _request(100, explicit_format=OutputFormat.PNG),
        )
        assert result.encoder_params.palette is False

    def test_webp_sets_alpha_quality_only_with_alpha(self, make_metadata):
        opaque = plan(
            make_metadata(ImageFormat.PNG),
            _request(80, explicit_format=OutputFormat.WEBP),
        )
        transparent = plan(
            make_metadata(ImageFormat.PNG, has_alpha=True),
            _request(80, explicit_format=OutputFormat.WEBP),
        )

        assert opaque.encoder_params.alpha_quality is None
        assert transparent.encoder_params.alpha_quality == 90

    def test_explicit_format_overrides_mode(self, make_metadata):
        result = plan(
            make_metadata(ImageFormat.PNG, 5000, 4000),
            _request(80, CompressionMode.LOSSLESS, explicit_format=OutputFormat.WEBP),
        )

        assert result.target_format == OutputFormat.WEBP
        assert result.resize_bounds is None


class TestUnrecognizedFormats:
    """未识别格式测试"""

    def test_other_without_alpha_becomes_jpeg_at_requested_quality(
        self, make_metadata
    ):
        result = plan(make_metadata(ImageFormat.OTHER, 4000, 3000), _request(80))

        assert result.target_format == OutputFormat.JPEG
        assert result.encoder_params.quality == 80
        assert result.resize_bounds is None


class TestPlannerProperties:
    """规划器的通用性质"""

    @pytest.mark.parametrize("quality", [1, 5, 10, 11, 49, 50, 79, 80, 90, 100])
    @pytest.mark.parametrize("mode", list(CompressionMode))
    @pytest.mark.parametrize("has_alpha", [False, True])
    @pytest.mark.parametrize(
        "source", [ImageFormat.PNG, ImageFormat.JPEG, ImageFormat.WEBP, ImageFormat.OTHER]
    )
    def test_quality_always_in_range_and_alpha_preserved(
        self, make_metadata, quality, mode, has_alpha, source
    ):
        """所有候选计划的质量都在 [1, 100]，透明图不会被转成 JPEG"""
        result = plan(
            make_metadata(source, 3000, 2000, has_alpha=has_alpha),
            _request(quality, mode),
        )

        for candidate in result.candidates():
            if candidate.quality is not None:
                assert 1 <= candidate.quality <= 100
            if has_alpha and source is not ImageFormat.JPEG:
                assert candidate.target_format in (OutputFormat.PNG, OutputFormat.WEBP)

    def test_deterministic(self, make_metadata):
        metadata = make_metadata(ImageFormat.PNG, 2500, 1000, has_alpha=True)
        request = _request(77, CompressionMode.CUSTOM)

        assert plan(metadata, request) == plan(metadata, request)
        assert CompressionPlanner().plan(metadata, request) == plan(metadata, request)


class TestNumericHelpers:
    """数值计算测试"""

    @pytest.mark.parametrize(
        ("size", "bounds", "expected"),
        [
            ((4000, 3000), (1920, 1920), (1920, 1440)),
            ((3000, 1000), (1920, 1920), (1920, 640)),
            ((1000, 3000), (1920, 1920), (640, 1920)),
            ((800, 600), (1920, 1920), (800, 600)),
            ((10000, 1), (1920, 1920), (1920, 1)),
        ],
    )
    def test_compute_resized_dimensions(self, size, bounds, expected):
        result = compute_resized_dimensions(
            *size, ResizeBounds(max_width=bounds[0], max_height=bounds[1])
        )
        assert result == expected

    def test_never_upscales(self):
        assert compute_resized_dimensions(
            100, 50, ResizeBounds(max_width=1000, max_height=1000)
        ) == (100, 50)
        assert compute_resized_dimensions(100, 50, None) == (100, 50)

    @pytest.mark.parametrize(
        ("quality", "expected"),
        [(100, 256), (50, 128), (1, 16), (5, 16)],
    )
    def test_palette_colors(self, quality, expected):
        assert palette_colors(quality, PlannerSettings()) == expected

    @pytest.mark.parametrize(
        ("quality", "expected"),
        [
            (95, ChromaSubsampling.S444),
            (90, ChromaSubsampling.S444),
            (85, ChromaSubsampling.S422),
            (79, ChromaSubsampling.S420),
        ],
    )
    def test_jpeg_subsampling(self, quality, expected):
        assert jpeg_subsampling(quality) == expected

    @pytest.mark.parametrize(
        ("quality", "expected"), [(90, 100), (85, 100), (75, 85), (60, 60)]
    )
    def test_webp_alpha_quality(self, quality, expected):
        assert webp_alpha_quality(quality) == expected


class TestCompressionRequest:
    """压缩请求测试"""

    @pytest.mark.parametrize(("value", "expected"), [(0, 1), (-5, 1), (150, 100), (42, 42)])
    def test_quality_is_clamped(self, value, expected):
        assert CompressionRequest(quality=value).quality == expected

    def test_non_integer_quality_rejected(self):
        with pytest.raises(PydanticValidationError):
            CompressionRequest(quality=True)
        with pytest.raises(PydanticValidationError):
            CompressionRequest(quality="80")

    def test_defaults(self):
        request = CompressionRequest()
        assert request.quality == 80
        assert request.mode == CompressionMode.LOSSY
        assert request.explicit_format is None
        assert request.max_file_size == 10 * 1024 * 1024
        assert request.max_batch_files == 50
