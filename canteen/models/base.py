"""
基础数据模型
定义通用的模型基类
"""

from pydantic import BaseModel


class BaseEntity(BaseModel):
    """基础实体模型"""
    
    model_config = {"from_attributes": True, "use_enum_values": True}


def cents_to_amount(cents: int) -> float:
    """分转换为元"""
    return cents / 100
