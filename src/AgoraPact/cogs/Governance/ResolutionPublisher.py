from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from AgoraPact.cogs.Governance.views.ProposalMessageBuilder import ProposalMessageBuilder
from AgoraPact.dto.ProposalDto import ProposalDto
from AgoraPact.dto.ProposalTypeConfigDto import ProposalTypeConfigDto

if TYPE_CHECKING:
    from AgoraPact.cogs.Governance.PlatformGateway import PlatformGateway

logger = logging.getLogger(__name__)


class ResolutionPublisher:
    """把通过的普通提案作为正式决议发布到决议频道。"""

    def __init__(self, gateway: "PlatformGateway"):
        self.gateway = gateway

    async def publish(self, proposal: ProposalDto, type_config: ProposalTypeConfigDto) -> int:
        """
        Returns:
            决议消息的 ID。
        """
        posted = await self.gateway.post_message(
            type_config.resolutions_channel_id, ProposalMessageBuilder.render_resolution(proposal)
        )
        logger.info(
            f"{proposal.proposal_type} 决议已发布到频道 {type_config.resolutions_channel_id}: {posted.id}"
        )
        return posted.id
