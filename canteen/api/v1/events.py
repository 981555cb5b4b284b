"""
变更事件路由
页面按序号轮询增量事件
"""

from fastapi import APIRouter, Depends, Query

from ...services import ServiceContainer
from ...core.error_handler import create_success_response
from ..deps import get_services

router = APIRouter()


@router.get("/events")
def poll_events(since: int = Query(0, ge=0),
                services: ServiceContainer = Depends(get_services)):
    """返回序号大于 since 的事件"""
    events = services.feed.since(since)
    return create_success_response({
        "events": [e.model_dump(mode="json") for e in events],
        "last_seq": services.feed.last_seq,
    }, "查询成功")
