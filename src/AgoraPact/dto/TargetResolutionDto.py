from pydantic import Field

from AgoraPact.share.BaseDto import BaseDto


class TargetResolutionDto(BaseDto):
    """
    撤回提案所指向的已发布决议。
    入库时以驼峰键名序列化。
    """

    message_id: int = Field(alias="messageId", description="决议消息ID")
    channel_id: int = Field(alias="channelId", description="决议频道ID")
    original_content: str = Field(alias="originalContent", description="决议正文")
