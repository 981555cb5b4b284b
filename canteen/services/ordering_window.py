"""
下单时间窗口
"""

from datetime import datetime, time
from typing import Any, Dict, Optional


def parse_hhmm(value: str) -> time:
    """解析 HH:MM 格式的时间"""
    return datetime.strptime(value.strip(), "%H:%M").time()


class OrderingWindow:
    """每日下单时间段（闭区间，本地时间）"""

    def __init__(self, start: time, end: time):
        self.start = start
        self.end = end

    @classmethod
    def from_settings(cls, s) -> Optional["OrderingWindow"]:
        """根据配置创建；未启用时返回 None，表示全天可下单"""
        if not s.ordering_window_enabled:
            return None
        return cls(parse_hhmm(s.ordering_start), parse_hhmm(s.ordering_end))

    def is_open(self, now: datetime) -> bool:
        current = now.time()
        if self.start <= self.end:
            return self.start <= current <= self.end
        # 跨午夜的窗口
        return current >= self.start or current <= self.end

    def describe(self) -> Dict[str, Any]:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
        }
