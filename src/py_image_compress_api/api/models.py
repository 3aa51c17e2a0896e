"""API 响应模型。"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """请求级错误"""

    error: str = Field(..., description="错误信息")


class HealthResponse(BaseModel):
    """健康检查"""

    status: str = Field("ok", description="服务状态")
    version: str = Field(..., description="服务版本")
    max_file_size: int = Field(..., description="单文件大小上限（字节）")
    max_batch_files: int = Field(..., description="批量文件数上限")


class ServiceInfo(BaseModel):
    """服务信息"""

    service: str = Field(..., description="服务名称")
    version: str = Field(..., description="服务版本")
    docs: str = Field("/docs", description="接口文档地址")
    endpoints: list[str] = Field(default_factory=list, description="可用接口")
