"""MCP 工具函数测试。"""

import zipfile

import pytest

from py_image_compress_api import mcp_server
from py_image_compress_api.mcp_server import run_compress_images, run_plan_compression


@pytest.fixture(autouse=True)
def fresh_compressor(monkeypatch):
    """每个测试使用新的压缩器实例"""
    monkeypatch.setattr(mcp_server, "_compressor", None)


@pytest.fixture
def image_dir(tmp_path, png_bytes, png_alpha_bytes):
    (tmp_path / "photo.png").write_bytes(png_bytes)
    (tmp_path / "logo.png").write_bytes(png_alpha_bytes)
    return tmp_path


class TestCompressImages:
    """compress_images 工具测试"""

    def test_single_file_written_next_to_input(self, image_dir):
        result = run_compress_images(str(image_dir / "photo.png"), quality="medium")

        assert result["success"] is True
        assert result["output_path"] == str(image_dir / "compressed_photo.jpg")
        assert (image_dir / "compressed_photo.jpg").exists()
        assert result["results"][0]["outputFormat"] == "jpeg"

    def test_directory_produces_archive(self, image_dir, tmp_path_factory):
        out_dir = tmp_path_factory.mktemp("out")
        result = run_compress_images(str(image_dir), output_path=str(out_dir))

        archive_path = out_dir / "compressed_images.zip"
        assert result["output_path"] == str(archive_path)
        names = sorted(zipfile.ZipFile(archive_path).namelist())
        assert names == ["compressed_logo.webp", "compressed_photo.jpg"]
        assert result["total_compressed_bytes"] > 0

    def test_missing_path(self, tmp_path):
        result = run_compress_images(str(tmp_path / "nope.png"))

        assert result["success"] is False
        assert result["error_type"] == "file"

    def test_invalid_mode(self, image_dir):
        result = run_compress_images(
            str(image_dir / "photo.png"), compression_type="magic"
        )
        assert result["error_type"] == "validation"

    def test_failed_file_writes_nothing(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not really a png")

        result = run_compress_images(str(path))

        assert result["success"] is False
        assert result["output_path"] is None
        assert result["results"][0]["reason"] == "UnsupportedType"


class TestPlanCompression:
    """plan_compression 工具测试"""

    def test_plan_for_opaque_png(self, image_dir):
        result = run_plan_compression(str(image_dir / "photo.png"))

        assert result["success"] is True
        assert result["metadata"]["format"] == "png"
        assert result["plan"]["target_format"] == "jpeg"
        assert result["plan"]["encoder_params"]["quality"] == 70

    def test_plan_for_transparent_png_has_fallback(self, image_dir):
        result = run_plan_compression(str(image_dir / "logo.png"))

        assert result["plan"]["target_format"] == "webp"
        assert result["plan"]["fallback"]["target_format"] == "png"

    def test_plan_missing_file(self, tmp_path):
        result = run_plan_compression(str(tmp_path / "nope.png"))
        assert result["error_type"] == "file"

    def test_plan_unsupported(self, tmp_path, svg_bytes):
        path = tmp_path / "logo.svg"
        path.write_bytes(svg_bytes)

        result = run_plan_compression(str(path))
        assert result["error_type"] == "processing"
