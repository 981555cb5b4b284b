"""
本地启动：python -m canteen
"""

import os

import uvicorn

from .app import app


if __name__ == "__main__":
    uvicorn.run(app, host=os.getenv("CANTEEN_HOST", "127.0.0.1"), port=int(os.getenv("CANTEEN_PORT", "8000")))
