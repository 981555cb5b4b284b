from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # 数据库配置
    database_url: str = "duckdb://./canteen/data/canteen.duckdb"
    
    # 会话令牌配置（仅携带学生身份，不做密码认证）
    jwt_secret_key: str = "your-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 12
    
    # 食堂员工口令，未配置时员工接口不校验
    staff_key: Optional[str] = None
    
    # API配置
    api_title: str = "Canteen API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"
    
    # 下单事务重试
    reservation_max_attempts: int = 5
    reservation_backoff_ms: int = 20
    
    # 下单时间窗口（本地时间 HH:MM，闭区间）
    ordering_window_enabled: bool = True
    ordering_start: str = "07:25"
    ordering_end: str = "12:45"
    
    # 菜单展示
    low_stock_threshold: int = 10
    seed_menu_on_startup: bool = True
    
    # 变更事件缓存条数
    event_history_size: int = 500
    
    # 开发模式
    debug: bool = False
    
    class Config:
        env_file = ".env"
        env_prefix = "CANTEEN_"
        case_sensitive = False

# 全局设置实例
settings = Settings()
