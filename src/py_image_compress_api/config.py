"""统一配置管理模块。

提供应用程序的配置管理，包括默认值、环境变量支持等。
配置只在请求入口处转换为 CompressionRequest，规划器本身不读取全局状态。
"""

import os
from dataclasses import dataclass

from .models.compression_config import PlannerSettings
from .models.constants import QualityDefaults, ValidationLimits


@dataclass(frozen=True)
class CompressionDefaults:
    """压缩相关的默认配置"""

    # 质量设置
    DEFAULT_QUALITY: int = QualityDefaults.DEFAULT
    LOSSY_QUALITY_OFFSET: int = 10
    QUALITY_FLOOR: int = 10
    LOSSLESS_JPEG_QUALITY: int = 92

    # 尺寸限制（仅有损/智能模式）
    MAX_DIMENSION: int = 1920

    # 编码器努力程度
    PNG_COMPRESS_LEVEL: int = 9
    WEBP_METHOD: int = 6

    # 调色板
    MIN_COLORS: int = 16
    MAX_COLORS: int = 256

    PREFER_WEBP_FOR_ALPHA: bool = True

    def planner_settings(self) -> PlannerSettings:
        """转换为规划器参数"""
        return PlannerSettings(
            max_dimension=self.MAX_DIMENSION,
            lossy_quality_offset=self.LOSSY_QUALITY_OFFSET,
            quality_floor=self.QUALITY_FLOOR,
            lossless_jpeg_quality=self.LOSSLESS_JPEG_QUALITY,
            png_compress_level=self.PNG_COMPRESS_LEVEL,
            webp_method=self.WEBP_METHOD,
            min_colors=self.MIN_COLORS,
            max_colors=self.MAX_COLORS,
            prefer_webp_for_alpha=self.PREFER_WEBP_FOR_ALPHA,
        )


@dataclass(frozen=True)
class LimitDefaults:
    """请求限制与并发的默认配置"""

    MAX_FILE_SIZE_BYTES: int = ValidationLimits.MAX_FILE_SIZE
    MAX_BATCH_FILES: int = ValidationLimits.MAX_BATCH_FILES

    # 并发设置
    MAX_WORKERS: int = 4
    BATCH_TIMEOUT_SECONDS: float = 30.0


@dataclass(frozen=True)
class ServerDefaults:
    """HTTP 服务的默认配置"""

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """解析逗号分隔的 CORS 来源"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text 或 json


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.compression = CompressionDefaults()
        self.limits = LimitDefaults()
        self.server = ServerDefaults()
        self.logging = LoggingDefaults()

        # 从环境变量加载配置
        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 压缩配置
        if quality := os.getenv("PIC_DEFAULT_QUALITY"):
            object.__setattr__(self.compression, "DEFAULT_QUALITY", int(quality))

        if offset := os.getenv("PIC_LOSSY_QUALITY_OFFSET"):
            object.__setattr__(self.compression, "LOSSY_QUALITY_OFFSET", int(offset))

        if floor := os.getenv("PIC_QUALITY_FLOOR"):
            object.__setattr__(self.compression, "QUALITY_FLOOR", int(floor))

        if max_dimension := os.getenv("PIC_MAX_DIMENSION"):
            object.__setattr__(self.compression, "MAX_DIMENSION", int(max_dimension))

        # 限制配置
        if max_file_size := os.getenv("PIC_MAX_FILE_SIZE_BYTES"):
            object.__setattr__(self.limits, "MAX_FILE_SIZE_BYTES", int(max_file_size))

        if max_batch := os.getenv("PIC_MAX_BATCH_FILES"):
            object.__setattr__(self.limits, "MAX_BATCH_FILES", int(max_batch))

        if max_workers := os.getenv("PIC_MAX_WORKERS"):
            object.__setattr__(self.limits, "MAX_WORKERS", int(max_workers))

        if timeout := os.getenv("PIC_BATCH_TIMEOUT_SECONDS"):
            object.__setattr__(self.limits, "BATCH_TIMEOUT_SECONDS", float(timeout))

        # 服务配置
        if host := os.getenv("PIC_HOST"):
            object.__setattr__(self.server, "HOST", host)

        if port := os.getenv("PIC_PORT"):
            object.__setattr__(self.server, "PORT", int(port))

        if cors := os.getenv("PIC_CORS_ORIGINS"):
            object.__setattr__(self.server, "CORS_ORIGINS", cors)

        # 日志配置
        if log_level := os.getenv("PIC_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if log_format := os.getenv("PIC_LOG_FORMAT"):
            object.__setattr__(self.logging, "LOG_FORMAT", log_format.lower())


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
