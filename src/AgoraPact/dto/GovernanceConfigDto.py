from typing import Any, Dict, Optional

from pydantic import Field, model_validator

from AgoraPact.dto.ProposalTypeConfigDto import ProposalTypeConfigDto
from AgoraPact.share.BaseDto import BaseDto
from AgoraPact.share.exceptions.ConfigurationMissing import ConfigurationMissing


class GovernanceConfigDto(BaseDto):
    """
    议事系统的全部静态配置。

    约束: 每个讨论频道和投票频道只属于一个提案类型，且二者互不重叠。
    决议频道允许被多个类型共用。
    """

    proposal_types: Dict[str, ProposalTypeConfigDto] = Field(alias="proposalTypes", min_length=1)
    moderator_role_id: Optional[int] = Field(default=None, alias="moderatorRoleId")
    pending_scan_limit: int = Field(default=50, alias="pendingScanLimit", ge=1, le=100)
    resolution_scan_limit: int = Field(default=100, alias="resolutionScanLimit", ge=1, le=100)

    @model_validator(mode="before")
    @classmethod
    def _normalize_types(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        types = data.get("proposalTypes", data.get("proposal_types"))
        if not isinstance(types, dict):
            return data

        normalized = {}
        for name, raw in types.items():
            key = str(name).strip().lower()
            if key in normalized:
                raise ValueError(f"提案类型名 '{name}' 与已有类型重复 (不区分大小写)")
            if isinstance(raw, dict) and key == "moderator":
                raw = {"moderatorAction": True, **raw}
            normalized[key] = raw
        return {**data, "proposalTypes": normalized}

    @model_validator(mode="after")
    def _check_channel_bindings(self) -> "GovernanceConfigDto":
        owners: Dict[int, str] = {}
        for name, type_config in self.proposal_types.items():
            for role, channel_id in (
                ("debate", type_config.debate_channel_id),
                ("vote", type_config.vote_channel_id),
            ):
                owner = owners.get(channel_id)
                if owner is not None:
                    raise ValueError(
                        f"频道 {channel_id} 同时被 {owner} 和 {name}/{role} 使用"
                    )
                owners[channel_id] = f"{name}/{role}"
        return self

    @classmethod
    def from_bot_config(cls, config: Dict[str, Any]) -> "GovernanceConfigDto":
        """
        从 config.json 的整体内容构造议事配置。
        管理员身份组 ID 取自 roles.moderator。
        """
        governance = dict(config.get("governance", {}))
        moderator_role = config.get("roles", {}).get("moderator")
        if moderator_role and "moderatorRoleId" not in governance:
            governance["moderatorRoleId"] = int(moderator_role)
        return cls.model_validate(governance)

    def get_type(self, type_name: str) -> ProposalTypeConfigDto:
        """
        按名称获取提案类型配置。

        Raises:
            ConfigurationMissing: 类型不存在。
        """
        type_config = self.proposal_types.get(type_name.lower())
        if type_config is None:
            raise ConfigurationMissing(type_name)
        return type_config
