"""
变更事件流
把菜品库存、订单的变化以事件形式推送给订阅方（员工看板、菜单页面等）

下单核心不依赖任何订阅者：没有订阅时 publish 只写入历史缓存。
"""

import itertools
import queue
import threading
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.logger import init_log

logger = init_log(__name__)

ITEM_UPDATED = "item_updated"
ORDER_PLACED = "order_placed"
DAY_RESET = "day_reset"


class ChangeEvent(BaseModel):
    """单条变更事件"""
    seq: int = Field(..., description="单调递增序号")
    kind: str = Field(..., description="事件类型")
    payload: Dict[str, Any] = Field(default_factory=dict)
    at: datetime = Field(default_factory=datetime.now)


class Subscription:
    """一个订阅者的事件队列"""

    def __init__(self, feed: "ChangeFeed", maxsize: int):
        self._feed = feed
        self._queue: "queue.Queue[ChangeEvent]" = queue.Queue(maxsize=maxsize)
        self.dropped = 0
        self.closed = False

    def _offer(self, event: ChangeEvent):
        """由 ChangeFeed.publish 在持有 feed 锁时调用"""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            # 慢订阅者丢弃事件，可通过 ChangeFeed.since 补齐
            self.dropped += 1

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """取下一条事件，超时返回 None"""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self):
        self.closed = True
        self._feed._unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class ChangeFeed:
    """线程安全的进程内发布/订阅"""

    def __init__(self, history_size: int = 500, queue_size: int = 1000):
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._history: deque = deque(maxlen=history_size)
        self._subscribers: List[Subscription] = []
        self._queue_size = queue_size

    def publish(self, kind: str, payload: Dict[str, Any]) -> ChangeEvent:
        with self._lock:
            event = ChangeEvent(seq=next(self._seq), kind=kind, payload=payload)
            self._history.append(event)
            # 持锁投递：各队列顺序与 seq 一致，dropped 计数不丢失
            for sub in self._subscribers:
                sub._offer(event)
        logger.debug("published %s #%d", kind, event.seq)
        return event

    def subscribe(self) -> Subscription:
        sub = Subscription(self, self._queue_size)
        with self._lock:
            self._subscribers.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription):
        with self._lock:
            if sub in self._subscribers:
                self._subscribers.remove(sub)

    def since(self, seq: int = 0) -> List[ChangeEvent]:
        """返回序号大于 seq 的缓存事件"""
        with self._lock:
            return [e for e in self._history if e.seq > seq]

    @property
    def last_seq(self) -> int:
        with self._lock:
            return self._history[-1].seq if self._history else 0

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
