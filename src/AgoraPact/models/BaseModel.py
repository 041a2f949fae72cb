from typing import Optional

from sqlmodel import Field, SQLModel


class BaseModel(SQLModel):
    """
    所有数据模型的基类。
    - 提供自增主键。业务键（如投票消息 ID）由各模型以唯一约束声明。
    """

    id: Optional[int] = Field(default=None, primary_key=True)
