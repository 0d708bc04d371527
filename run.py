#!/usr/bin/env python3
"""
项目启动脚本
"""

import os

import uvicorn
from dotenv import load_dotenv

# 加载环境变量
load_dotenv()


def main():
    """启动FastAPI应用"""
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    debug = os.getenv("DEBUG", "false").lower() == "true"

    print(f"启动服务器...")
    print(f"地址: http://{host}:{port}")
    print(f"调试模式: {debug}")
    print(f"API文档: http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=debug,
        log_level="debug" if debug else "info"
    )


if __name__ == "__main__":
    main()
