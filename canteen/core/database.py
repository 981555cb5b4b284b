"""
数据库连接和管理模块
负责 DuckDB 数据库的初始化、连接管理、表结构定义和事务封装

并发模型：
- 进程内只保留一个根连接；每个事务从根连接派生独立的 cursor，
  各自拥有独立的事务上下文，不同线程上的事务可以真正并发执行。
- 不加全局锁。写-写冲突由 DuckDB 的 MVCC 检测（TransactionException），
  或由 menu_items.version 乐观锁检测（受影响行数为 0），两者都统一转换为
  ConcurrencyError，交给上层的重试组合器处理。
"""

import duckdb
from pathlib import Path
import json
from typing import Any, Dict, Optional, Generator
from contextlib import contextmanager
import threading

from .exceptions import BaseApplicationError, ConcurrencyError, DatabaseError
from .logger import init_log
from ..config.settings import settings

logger = init_log(__name__)

# 完整的表结构定义
SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS menu_items (
  item_id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  category TEXT,
  price_cents INTEGER NOT NULL CHECK (price_cents >= 0),
  image_url TEXT,
  total_limit INTEGER NOT NULL CHECK (total_limit >= 0),
  current_ordered INTEGER NOT NULL DEFAULT 0 CHECK (current_ordered >= 0 AND current_ordered <= total_limit),
  manual_sold_out BOOLEAN NOT NULL DEFAULT FALSE,
  version INTEGER NOT NULL DEFAULT 0,  -- 每次写入递增，用于乐观锁
  updated_at TIMESTAMP DEFAULT now()
);

CREATE TABLE IF NOT EXISTS orders (
  order_id TEXT PRIMARY KEY,  -- <YYYY-MM-DD>_<identity>，保证每人每天一单
  identity TEXT NOT NULL,
  order_date DATE NOT NULL,
  items_json JSON NOT NULL,  -- 下单时刻的菜品快照
  total_cents INTEGER NOT NULL,
  status TEXT CHECK(status IN ('placed')) NOT NULL,
  created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_orders_date ON orders(order_date);

CREATE SEQUENCE IF NOT EXISTS logs_id_seq;
CREATE TABLE IF NOT EXISTS logs (
  log_id INTEGER DEFAULT nextval('logs_id_seq') PRIMARY KEY,
  actor TEXT,
  action TEXT,
  detail_json JSON,
  created_at TIMESTAMP DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_logs_action ON logs(action);
"""


def _is_conflict(e: Exception) -> bool:
    """判断 DuckDB 异常是否属于并发冲突"""
    if isinstance(e, duckdb.TransactionException):
        return True
    return "conflict" in str(e).lower()


class DatabaseManager:
    """数据库管理器，封装所有数据库操作"""

    def __init__(self, db_path: Optional[str] = None):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self.db_path = db_path or self._get_db_path_from_settings()

    def _get_db_path_from_settings(self) -> str:
        """从设置中获取数据库路径"""
        db_url = settings.database_url
        if db_url.startswith("duckdb://"):
            return db_url.replace("duckdb://", "")
        return db_url

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """获取根连接（首次访问时建立并初始化表结构）"""
        with self._lock:
            if self._connection is None:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._connection = duckdb.connect(self.db_path)
                self._init_schema()
                logger.info("database opened at %s", self.db_path)
            return self._connection

    def _init_schema(self):
        """初始化数据库表结构"""
        try:
            # 安装和加载JSON扩展
            try:
                self._connection.execute("INSTALL json")
                self._connection.execute("LOAD json")
            except duckdb.Error:
                pass  # JSON扩展可能已经内置

            self._connection.execute(SCHEMA_SQL)

        except duckdb.Error as e:
            raise DatabaseError(f"Failed to initialize schema: {e}")

    def init_database(self):
        """初始化数据库"""
        # 访问 connection 即完成建表
        self.connection

    def close(self):
        """关闭根连接"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    @contextmanager
    def cursor(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """派生一个独立 cursor，用于只读查询"""
        cur = self.connection.cursor()
        try:
            yield cur
        finally:
            cur.close()

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """
        数据库事务上下文管理器

        在独立 cursor 上开启事务；正常退出时提交，异常时回滚。
        DuckDB 报告的写-写冲突转换为 ConcurrencyError，其余数据库错误转换为 DatabaseError，
        业务异常原样抛出。
        """
        cur = self.connection.cursor()
        try:
            cur.execute("BEGIN TRANSACTION")
            try:
                yield cur
            except BaseException:
                try:
                    cur.execute("ROLLBACK")
                except duckdb.Error:
                    pass  # 冲突时 DuckDB 已自动中止事务
                raise
            try:
                cur.execute("COMMIT")
            except duckdb.ConstraintException as e:
                # 提交时才违反的唯一约束来自并发提交的同键写入
                raise ConcurrencyError(details={"reason": str(e)})
        except BaseApplicationError:
            raise
        except duckdb.Error as e:
            if _is_conflict(e):
                raise ConcurrencyError(details={"reason": str(e)})
            raise DatabaseError(f"数据库操作失败: {e}")
        finally:
            cur.close()

    def execute_query(self, query: str, params: list = None) -> list:
        """执行查询并返回结果"""
        try:
            with self.cursor() as cur:
                if params:
                    return cur.execute(query, params).fetchall()
                return cur.execute(query).fetchall()
        except duckdb.Error as e:
            raise DatabaseError(f"Query execution failed: {e}")

    def execute_one(self, query: str, params: list = None) -> Optional[tuple]:
        """执行查询并返回单条结果"""
        try:
            with self.cursor() as cur:
                if params:
                    return cur.execute(query, params).fetchone()
                return cur.execute(query).fetchone()
        except duckdb.Error as e:
            raise DatabaseError(f"Query execution failed: {e}")

    def write_log(self, con, action: str, actor: Optional[str], detail: Dict[str, Any]):
        """写入操作日志，con 为当前事务的 cursor 时随事务一起提交"""
        con.execute(
            "INSERT INTO logs(actor, action, detail_json) VALUES (?,?,?)",
            [actor, action, json.dumps(detail, ensure_ascii=False, default=str)],
        )


# 全局数据库管理器实例
db_manager = DatabaseManager()
