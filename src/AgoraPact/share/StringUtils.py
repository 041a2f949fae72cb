import re


class StringUtils:
    """
    提供字符串处理相关的静态工具方法
    """

    @staticmethod
    def clean_message_id(raw: str) -> int | None:
        """
        从用户输入中提取消息 ID。<br>
        支持纯数字、`频道ID-消息ID` 以及完整的消息链接。
        """
        candidate = raw.strip().split("-")[-1].split("/")[-1].strip()
        if candidate.isdigit():
            return int(candidate)
        return None

    @staticmethod
    def truncate(text: str, limit: int) -> str:
        """
        截断文本，超出部分以 '...' 结尾。
        """
        if len(text) <= limit:
            return text
        return text[:limit] + "..."

    @staticmethod
    def message_link(guild_id: int, channel_id: int, message_id: int) -> str:
        """
        生成 Discord 消息跳转链接
        """
        return f"https://discord.com/channels/{guild_id}/{channel_id}/{message_id}"

    @staticmethod
    def strip_mentions(text: str) -> str:
        """
        将 `<@123>` 形式的提及替换为 `@123`，避免列表中出现大量提醒。
        """
        return re.sub(r"<@!?(\d+)>", r"@\1", text)
