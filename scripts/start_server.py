#!/usr/bin/env python3
"""
Face Embeddings API 服务器启动脚本
"""

import os
import sys

# Make the face_gateway package importable without installing it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from face_gateway.app import app
from face_gateway.config import GatewaySettings
import uvicorn

if __name__ == "__main__":
    settings = GatewaySettings.from_env()

    print(f"🚀 Starting Face Embeddings API on {settings.host}:{settings.port}")
    print(f"📸 POST to /embeddings with an image to get face embeddings")
    print(f"❤️  GET /health to check server status")

    # Models load in the lifespan hook; if they fail, uvicorn exits before serving
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        access_log=True,
        loop="asyncio",
        http="httptools"
    )
