"""HTTP 接口测试。"""

import json
import os
import zipfile
from io import BytesIO
from unittest import mock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from py_image_compress_api import __version__
from py_image_compress_api.api import create_app
from py_image_compress_api.api.responses import content_disposition
from py_image_compress_api.exceptions import EncodeError


@pytest.fixture
def app(app_config):
    return create_app(app_config)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def _post_single(client, data, filename="photo.png", content_type="image/png", **form):
    return client.post(
        "/api/compress",
        files={"file": (filename, data, content_type)},
        data=form,
    )


class TestCompressEndpoint:
    """单文件接口测试"""

    def test_opaque_png_returns_jpeg(self, client, png_bytes):
        response = _post_single(client, png_bytes, quality="80")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.headers["x-output-format"] == "jpeg"
        assert response.headers["x-original-size"] == str(len(png_bytes))
        assert response.headers["x-compressed-size"] == str(len(response.content))
        assert 'filename="compressed_photo.jpg"' in response.headers["content-disposition"]
        assert Image.open(BytesIO(response.content)).format == "JPEG"

    def test_transparent_png_returns_webp(self, client, png_alpha_bytes):
        response = _post_single(client, png_alpha_bytes, filename="icon.png")

        assert response.status_code == 200
        assert response.headers["x-output-format"] == "webp"
        assert Image.open(BytesIO(response.content)).mode == "RGBA"

    def test_lossless_keeps_png(self, client, png_bytes):
        response = _post_single(client, png_bytes, compressionType="lossless")

        assert response.status_code == 200
        assert response.headers["x-output-format"] == "png"
        assert int(response.headers["x-compressed-size"]) <= len(png_bytes)

    def test_explicit_format_and_preset_quality(self, client, png_bytes):
        response = _post_single(client, png_bytes, quality="high", format="webp")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/webp"

    def test_ratio_has_one_decimal(self, client, jpeg_bytes):
        response = _post_single(
            client, jpeg_bytes, filename="a.jpg", content_type="image/jpeg"
        )

        ratio = response.headers["x-compression-ratio"]
        assert ratio.split(".")[1].isdigit() and len(ratio.split(".")[1]) == 1

    def test_missing_file(self, client):
        response = client.post("/api/compress", data={"quality": "80"})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_invalid_compression_type(self, client, png_bytes):
        response = _post_single(client, png_bytes, compressionType="extreme")

        assert response.status_code == 400
        assert "compressionType" in response.json()["error"]

    def test_invalid_quality(self, client, png_bytes):
        response = _post_single(client, png_bytes, quality="very good")
        assert response.status_code == 400

    def test_unsupported_file(self, client):
        response = _post_single(
            client, b"plain text", filename="notes.txt", content_type="text/plain"
        )
        assert response.status_code == 400

    def test_svg_rejected(self, client, svg_bytes):
        response = _post_single(
            client, svg_bytes, filename="logo.svg", content_type="image/svg+xml"
        )
        assert response.status_code == 400

    def test_too_large(self, client):
        response = _post_single(client, os.urandom(600 * 1024), filename="huge.png")

        assert response.status_code == 400
        assert "huge.png" in response.json()["error"]

    def test_encode_failure_returns_500(self, app, png_bytes):
        client = TestClient(app, raise_server_exceptions=False)
        codec = app.state.compressor.codec

        with mock.patch.object(codec, "encode", side_effect=EncodeError("编码失败")):
            response = _post_single(client, png_bytes)

        assert response.status_code == 500
        assert response.json()["error"]

    def test_unexpected_exception_returns_500(self, app, png_bytes):
        client = TestClient(app, raise_server_exceptions=False)

        with mock.patch.object(
            app.state.compressor, "compress_upload", side_effect=RuntimeError("bug")
        ):
            response = _post_single(client, png_bytes)

        assert response.status_code == 500
        assert response.json() == {"error": "服务器内部错误"}


class TestBatchEndpoint:
    """批量接口测试"""

    def test_zip_response(self, client, png_bytes, png_alpha_bytes, jpeg_bytes):
        response = client.post(
            "/api/compress/batch",
            files={
                "file_0": ("a.png", png_bytes, "image/png"),
                "file_1": ("b.png", png_alpha_bytes, "image/png"),
                "file_2": ("c.txt", b"not an image", "text/plain"),
            },
            data={"fileCount": "3", "quality": "60"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.headers["x-files-processed"] == "2"
        assert response.headers["x-files-failed"] == "1"
        assert "compressed_images.zip" in response.headers["content-disposition"]

        archive = zipfile.ZipFile(BytesIO(response.content))
        assert sorted(archive.namelist()) == ["compressed_a.jpg", "compressed_b.webp"]

        statuses = json.loads(response.headers["x-file-results"])
        assert [s["name"] for s in statuses] == ["a.png", "b.png", "c.txt"]
        assert statuses[2]["status"] == "failure"
        assert statuses[2]["reason"] == "UnsupportedType"

        total_compressed = sum(info.file_size for info in archive.infolist())
        assert response.headers["x-compressed-size"] == str(total_compressed)

    def test_count_exceeded_before_reading(self, client, png_bytes):
        response = client.post(
            "/api/compress/batch",
            files={"file_0": ("a.png", png_bytes, "image/png")},
            data={"fileCount": "51"},
        )

        assert response.status_code == 400
        assert "51" in response.json()["error"]

    def test_zero_files(self, client):
        response = client.post("/api/compress/batch", data={"fileCount": "0"})
        assert response.status_code == 400

    def test_single_file_batch_uses_single_response(self, client, png_bytes):
        response = client.post(
            "/api/compress/batch",
            files={"file_0": ("only.png", png_bytes, "image/png")},
            data={"fileCount": "1"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert "compressed_only.jpg" in response.headers["content-disposition"]

    def test_file_count_inferred(self, client, png_bytes, jpeg_bytes):
        response = client.post(
            "/api/compress/batch",
            files={
                "file_0": ("a.png", png_bytes, "image/png"),
                "file_1": ("b.jpg", jpeg_bytes, "image/jpeg"),
            },
        )

        assert response.status_code == 200
        assert response.headers["x-files-processed"] == "2"

    def test_declared_file_not_uploaded(self, client, png_bytes, jpeg_bytes):
        """fileCount 声明的字段不是文件时拒绝整个请求"""
        response = client.post(
            "/api/compress/batch",
            files={
                "file_0": ("a.png", png_bytes, "image/png"),
                "file_2": ("c.jpg", jpeg_bytes, "image/jpeg"),
            },
            data={"fileCount": "3", "file_1": "oops"},
        )

        assert response.status_code == 400
        assert "file_1" in response.json()["error"]

    def test_declared_file_missing(self, client, png_bytes):
        response = client.post(
            "/api/compress/batch",
            files={"file_0": ("a.png", png_bytes, "image/png")},
            data={"fileCount": "2"},
        )

        assert response.status_code == 400
        assert "file_1" in response.json()["error"]

    def test_oversized_middle_file_left_out_of_archive(
        self, client, png_bytes, jpeg_bytes
    ):
        response = client.post(
            "/api/compress/batch",
            files={
                "file_0": ("a.png", png_bytes, "image/png"),
                "file_1": ("huge.png", os.urandom(600 * 1024), "image/png"),
                "file_2": ("c.jpg", jpeg_bytes, "image/jpeg"),
            },
            data={"fileCount": "3"},
        )

        assert response.status_code == 200
        assert response.headers["x-files-processed"] == "2"
        assert response.headers["x-files-failed"] == "1"

        archive = zipfile.ZipFile(BytesIO(response.content))
        assert len(archive.namelist()) == 2

        statuses = json.loads(response.headers["x-file-results"])
        assert [s["name"] for s in statuses] == ["a.png", "huge.png", "c.jpg"]
        assert statuses[1]["status"] == "failure"
        assert statuses[1]["reason"] == "TooLarge"

    def test_all_failed_returns_empty_archive(self, client):
        response = client.post(
            "/api/compress/batch",
            files={
                "file_0": ("a.txt", b"x", "text/plain"),
                "file_1": ("b.txt", b"y", "text/plain"),
            },
            data={"fileCount": "2"},
        )

        assert response.status_code == 200
        assert response.headers["x-files-processed"] == "0"
        assert response.headers["x-compression-ratio"] == "0.0"
        assert zipfile.ZipFile(BytesIO(response.content)).namelist() == []


class TestServiceEndpoints:
    """健康检查与服务信息"""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == __version__
        assert body["max_file_size"] == 512 * 1024

    def test_root(self, client):
        body = client.get("/").json()
        assert "POST /api/compress" in body["endpoints"]

    def test_cors_exposes_headers(self, client, png_bytes):
        response = client.post(
            "/api/compress",
            files={"file": ("a.png", png_bytes, "image/png")},
            headers={"Origin": "http://example.com"},
        )
        assert "X-Compression-Ratio" in response.headers["access-control-expose-headers"]


def test_content_disposition_non_ascii():
    header = content_disposition("compressed_照片.jpg")

    assert header.startswith('attachment; filename="compressed_.jpg"')
    assert "filename*=UTF-8''compressed_%E7%85%A7%E7%89%87.jpg" in header
