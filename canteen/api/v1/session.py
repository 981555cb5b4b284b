"""
会话路由
"""

from fastapi import APIRouter

from ...schemas.session import SessionRequest, SessionResponse
from ...core.security import security_manager
from ...core.error_handler import create_success_response

router = APIRouter()


@router.post("/session")
def open_session(req: SessionRequest):
    """为学生标识签发会话令牌"""
    token = security_manager.create_session_token(req.identity)
    data = SessionResponse(token=token, identity=req.identity)
    return create_success_response(data.model_dump(), "会话已创建")
