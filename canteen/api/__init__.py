"""
API routes and endpoints.
"""

from fastapi import APIRouter
from .v1 import events, menu, orders, session, staff

api_router = APIRouter()

# 包含所有v1路由
api_router.include_router(session.router, prefix="", tags=["会话"])
api_router.include_router(menu.router, prefix="", tags=["菜单"])
api_router.include_router(orders.router, prefix="", tags=["订单"])
api_router.include_router(staff.router, prefix="/staff", tags=["员工"])
api_router.include_router(events.router, prefix="", tags=["事件"])
