"""Entry point for python -m py_image_compress_api.

默认启动 HTTP 服务，参数 mcp 启动 MCP 服务器。
"""

import sys


def main() -> None:
    """主入口函数"""
    args = sys.argv[1:]

    # 检查版本信息
    if args and args[0] in ["--version", "-v"]:
        from . import __version__

        print(f"py-image-compress-api {__version__}")
        return

    if args and args[0] == "mcp":
        from .mcp_server import main as server_main

        server_main()
        return

    # 启动 HTTP 服务
    import uvicorn

    from .config import get_config

    config = get_config()
    uvicorn.run(
        "py_image_compress_api.api.app:app",
        host=config.server.HOST,
        port=config.server.PORT,
        log_level=config.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
