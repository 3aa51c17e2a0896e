"""API 路由。"""

from . import compress


__all__ = ["compress"]
