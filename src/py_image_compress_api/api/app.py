"""FastAPI 应用。

创建应用实例、注册路由、CORS 与统一的异常处理。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..compressor import ImageCompressor
from ..config import AppConfig, get_config
from ..exceptions import ValidationError
from ..utils.logging_helpers import configure_logging, get_logger
from .models import ServiceInfo
from .responses import EXPOSED_HEADERS, error_response
from .routes import compress


logger = get_logger()

SERVICE_NAME = "py-image-compress-api"


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """请求级验证错误返回 400"""
    logger.warning(f"请求验证失败 {request.url.path}: {exc.message}")
    return error_response(400, exc.message)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """表单字段类型错误同样返回 400"""
    messages = [
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    logger.warning(f"请求参数错误 {request.url.path}: {messages}")
    return error_response(400, "; ".join(messages) or "请求参数错误")


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """未预期的错误返回 500"""
    logger.error(f"处理请求失败 {request.url.path}: {exc}", exc_info=exc)
    return error_response(500, "服务器内部错误")


def create_app(config: AppConfig | None = None) -> FastAPI:
    """创建应用实例

    Args:
        config: 应用配置，None 使用全局配置
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging(config.logging.LOG_LEVEL, config.logging.LOG_FORMAT)
        logger.info(f"{SERVICE_NAME} {__version__} 启动")
        yield
        logger.info(f"{SERVICE_NAME} 关闭")

    app = FastAPI(
        title="Image Compression Service",
        description="图片压缩服务：自动选择输出格式与编码参数，支持批量压缩",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.compressor = ImageCompressor(config=config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=EXPOSED_HEADERS,
    )

    app.add_exception_handler(ValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(compress.router)

    @app.get("/", response_model=ServiceInfo)
    async def root() -> ServiceInfo:
        """服务信息"""
        return ServiceInfo(
            service=SERVICE_NAME,
            version=__version__,
            endpoints=[
                "POST /api/compress",
                "POST /api/compress/batch",
                "GET /api/health",
            ],
        )

    return app


app = create_app()
