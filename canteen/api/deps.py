"""
路由公共依赖
"""

from fastapi import Request

from ..services import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """返回 create_app 时挂载的服务实例"""
    return request.app.state.services
