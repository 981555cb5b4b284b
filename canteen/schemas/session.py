"""
会话相关的请求/响应模式
"""

from pydantic import BaseModel, Field


class SessionRequest(BaseModel):
    """开启会话请求（学生学号等标识）"""
    identity: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_\-]+$", description="学生标识")


class SessionResponse(BaseModel):
    """会话响应"""
    token: str = Field(..., description="会话令牌")
    identity: str = Field(..., description="学生标识")
