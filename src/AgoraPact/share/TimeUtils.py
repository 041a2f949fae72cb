import logging
import re
from datetime import datetime, timedelta, timezone

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+)\s*([dhms])", re.IGNORECASE)
_DURATION_UNITS = {"d": "days", "h": "hours", "m": "minutes", "s": "seconds"}
_ISO_DURATION = TypeAdapter(timedelta)


class TimeUtils:
    """
    一个用于处理时间相关操作的工具类。
    所有写入数据库的时间均为不含时区信息的 UTC 时间。
    """

    @staticmethod
    def utc_now() -> datetime:
        """返回当前的朴素 UTC 时间。"""
        return datetime.now(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def to_unix(moment: datetime) -> int:
        """
        将朴素 UTC 时间转换为 Unix 时间戳（秒）。
        """
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return int(moment.timestamp())

    @staticmethod
    def discord_timestamp(moment: datetime, style: str = "F") -> str:
        """
        生成 Discord 时间戳标记，例如 `<t:1700000000:F>`。
        """
        return f"<t:{TimeUtils.to_unix(moment)}:{style}>"

    @staticmethod
    def parse_duration(value: int | float | str | timedelta) -> timedelta:
        """
        解析配置中的时长。

        Args:
            value: 毫秒整数、`timedelta`、形如 "24h"、"90m"、"1d12h" 的字符串，
                或 ISO-8601 时长如 "PT24H"。

        Returns:
            对应的 timedelta。

        Raises:
            ValueError: 无法解析或时长不为正。
        """
        if isinstance(value, timedelta):
            duration = value
        elif isinstance(value, bool):
            raise ValueError(f"无效的时长: {value!r}")
        elif isinstance(value, (int, float)):
            duration = timedelta(milliseconds=value)
        elif isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                duration = timedelta(milliseconds=int(text))
            elif text[:1].upper() == "P":
                try:
                    duration = _ISO_DURATION.validate_python(text.upper())
                except ValidationError as e:
                    raise ValueError(f"无效的时长: {value!r}") from e
            else:
                parts = _DURATION_PART.findall(text)
                if not parts or _DURATION_PART.sub("", text).strip():
                    raise ValueError(f"无效的时长: {value!r}")
                kwargs: dict[str, int] = {}
                for amount, unit in parts:
                    key = _DURATION_UNITS[unit.lower()]
                    kwargs[key] = kwargs.get(key, 0) + int(amount)
                duration = timedelta(**kwargs)
        else:
            raise ValueError(f"无效的时长: {value!r}")

        if duration <= timedelta(0):
            raise ValueError(f"时长必须为正: {value!r}")
        return duration

    @staticmethod
    def format_remaining(end_time: datetime, now: datetime | None = None) -> str:
        """
        将剩余时间格式化为 "1d 4h"、"35m" 或 "Ended"。
        """
        now = now or TimeUtils.utc_now()
        remaining = end_time - now
        if remaining <= timedelta(0):
            return "Ended"

        total_minutes = int(remaining.total_seconds() // 60)
        days, rest = divmod(total_minutes, 24 * 60)
        hours, minutes = divmod(rest, 60)
        if days:
            return f"{days}d {hours}h"
        if hours:
            return f"{hours}h {minutes}m"
        return f"{max(minutes, 1)}m"
