"""
会话与员工口令
会话令牌只携带学生身份，用于把身份显式传入下单操作，不做密码认证
"""

import hmac
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from fastapi import HTTPException, Header, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .exceptions import AuthenticationError, PermissionDeniedError
from ..config.settings import settings


class SecurityManager:
    """安全管理器"""

    def create_session_token(self, identity: str, additional_claims: Dict[str, Any] = None) -> str:
        """创建会话 token"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": identity,
            "exp": now + timedelta(hours=settings.jwt_expire_hours),
            "iat": now,
        }
        if additional_claims:
            payload.update(additional_claims)
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def decode_session_token(self, token: str) -> Dict[str, Any]:
        """解码会话 token"""
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}")

    def get_identity_from_token(self, token: str) -> str:
        """从 token 中提取身份"""
        payload = self.decode_session_token(token)
        identity = payload.get("sub")
        if not identity:
            raise AuthenticationError("Token missing identity")
        return identity

    def verify_staff_key(self, x_staff_key: Optional[str] = None) -> str:
        """校验员工口令；未配置口令时直接通过"""
        expected = (settings.staff_key or "").strip()
        if expected:
            given = (x_staff_key or "").strip()
            if not hmac.compare_digest(given.encode(), expected.encode()):
                raise PermissionDeniedError()
        return "staff"


# 全局安全管理器实例
security_manager = SecurityManager()


async def get_identity(
    credentials: HTTPAuthorizationCredentials = Depends(HTTPBearer())
) -> str:
    """从 Authorization header 中提取学生身份"""
    try:
        return security_manager.get_identity_from_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)


async def require_staff(x_staff_key: Optional[str] = Header(default=None)) -> str:
    """员工接口依赖，返回操作者标识"""
    try:
        return security_manager.verify_staff_key(x_staff_key)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=e.message)
