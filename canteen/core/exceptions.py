"""
自定义异常类
提供更精确的错误处理和异常信息

下单相关的异常都继承自 ReservationError，调用方可以据此调整购物车后重试；
存储层的并发冲突以 ConcurrencyError 抛出，由重试组合器内部消化。
"""

from typing import Any, Dict, Optional


class BaseApplicationError(Exception):
    """应用基础异常类"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class DatabaseError(BaseApplicationError):
    """数据库相关异常"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "DATABASE_ERROR", details)


class ConcurrencyError(BaseApplicationError):
    """并发修改冲突（乐观锁校验失败或存储层事务冲突）"""

    def __init__(self, message: str = "数据已被并发修改", details: Dict[str, Any] = None):
        super().__init__(message, "CONCURRENCY_CONFLICT", details)


class AuthenticationError(BaseApplicationError):
    """会话令牌无效"""

    def __init__(self, message: str):
        super().__init__(message, "AUTHENTICATION_REQUIRED")


class PermissionDeniedError(BaseApplicationError):
    """员工口令错误"""

    def __init__(self, message: str = "员工口令无效"):
        super().__init__(message, "PERMISSION_DENIED")


class ValidationError(BaseApplicationError):
    """数据验证异常"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class OrderNotFoundError(BaseApplicationError):
    """订单不存在"""

    def __init__(self, order_id: str):
        super().__init__("订单不存在", "ORDER_NOT_FOUND", {"order_id": order_id})


class ReservationError(BaseApplicationError):
    """下单失败的基类，失败时不会产生任何可见的状态变化"""
    pass


class InvalidCartError(ReservationError):
    """购物车为空或数量非法"""

    def __init__(self, message: str, item_id: Optional[str] = None):
        details = {"item_id": item_id} if item_id is not None else {}
        super().__init__(message, "INVALID_CART", details)


class ItemNotFoundError(ReservationError):
    """菜品不存在"""

    def __init__(self, item_id: str):
        super().__init__(f"菜品 {item_id} 不存在", "ITEM_NOT_FOUND", {"item_id": item_id})
        self.item_id = item_id


class InsufficientStockError(ReservationError):
    """剩余数量不足"""

    def __init__(self, item_id: str, name: str, requested: int, remaining: int):
        super().__init__(
            f"{name} 库存不足，剩余 {max(remaining, 0)} 份",
            "INSUFFICIENT_STOCK",
            {"item_id": item_id, "name": name, "requested": requested, "remaining": remaining},
        )
        self.item_id = item_id


class ManuallyDisabledError(ReservationError):
    """菜品已被员工手动下架"""

    def __init__(self, item_id: str, name: str):
        super().__init__(f"{name} 暂不可售", "ITEM_DISABLED", {"item_id": item_id, "name": name})
        self.item_id = item_id


class DuplicateOrderError(ReservationError):
    """同一身份当天已下过单"""

    def __init__(self, order_id: str):
        super().__init__("今天已经下过单了", "DUPLICATE_ORDER", {"order_id": order_id})


class OrderingClosedError(ReservationError):
    """不在下单时间窗口内"""

    def __init__(self, start: str, end: str):
        super().__init__(
            f"下单时间为 {start} - {end}",
            "ORDERING_CLOSED",
            {"ordering_start": start, "ordering_end": end},
        )


class ConflictRetryExhaustedError(ReservationError):
    """并发冲突重试次数用尽"""

    def __init__(self, attempts: int):
        super().__init__(
            "系统繁忙，请稍后重试",
            "CONFLICT_RETRY_EXHAUSTED",
            {"attempts": attempts},
        )
