from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelSchema(BaseModel):
    """对外字段统一使用 camelCase，支持从 ORM 对象直接生成"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BaseResponse(BaseModel):
    """基础响应模型"""
    success: bool = Field(
        ...,
        description="请求是否成功"
    )
    message: Optional[str] = Field(
        None,
        description="响应消息"
    )


class ErrorResponse(BaseModel):
    """错误响应模型"""
    success: bool = Field(
        False,
        description="恒为 false"
    )
    message: str = Field(
        ...,
        description="错误信息"
    )
