import json
from typing import Any

from sqlalchemy import TEXT, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB


class JsonEncoded(TypeDecorator):
    """
    将字典序列化为 JSON 字符串存储在 TEXT 列中。
    SQLite 没有原生 JSON 列，决议引用等嵌套字段通过它落库。
    """

    impl = TEXT
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Any) -> Any | None:
        if value is None:
            return None
        return json.loads(value)


# PostgreSQL 使用 JSONB，其余方言回退到 JsonEncoded
JSON_TYPE = JSONB().with_variant(JsonEncoded(), "sqlite", "mysql")
