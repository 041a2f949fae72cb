from pydantic import BaseModel, ConfigDict


class BaseDto(BaseModel):
    """
    所有 DTO 的基类，统一配置。
    允许从 ORM 对象构造，并在字段名与别名之间互通。
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
