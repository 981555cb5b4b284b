"""
乐观并发重试组合器
把“读取-校验-写入-提交”整体包装成可重放的操作，遇到并发冲突时从头重新执行
"""

import random
import time
from typing import Callable, TypeVar

from .exceptions import ConcurrencyError, ConflictRetryExhaustedError
from .logger import init_log

T = TypeVar("T")

logger = init_log(__name__)


def run_with_retry(
    operation: Callable[[], T],
    max_attempts: int,
    backoff_ms: int = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    执行 operation，遇到 ConcurrencyError 时整体重试
    
    Args:
        operation: 无参可调用对象，每次调用都必须是一次完整的事务
        max_attempts: 最大尝试次数（包含第一次）
        backoff_ms: 退避基数，第 n 次重试前等待 n * backoff_ms 毫秒（带随机抖动）
        sleep: 等待函数，测试中可替换
        
    Returns:
        operation 的返回值
        
    Raises:
        ConflictRetryExhaustedError: 所有尝试都因冲突失败时
        其他异常: 原样抛出，不重试
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except ConcurrencyError as e:
            if attempt >= max_attempts:
                logger.warning("conflict retries exhausted after %d attempts: %s", attempt, e.message)
                raise ConflictRetryExhaustedError(max_attempts) from e
            logger.info("conflict on attempt %d/%d, retrying: %s", attempt, max_attempts, e.message)
            if backoff_ms > 0:
                sleep(backoff_ms * attempt * random.uniform(0.5, 1.5) / 1000.0)

    # 不可达：循环要么返回要么抛出
    raise ConflictRetryExhaustedError(max_attempts)
