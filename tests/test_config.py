"""Tests for governance configuration loading and validation."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from AgoraPact.dto.GovernanceConfigDto import GovernanceConfigDto
from AgoraPact.share.exceptions.ConfigurationMissing import ConfigurationMissing
from tests.fakes import MODERATOR_ROLE_ID, POLICY_DEBATE, POLICY_VOTE, make_config_data


class TestGovernanceConfig:
    def test_type_names_are_lowercased(self, governance_config):
        assert set(governance_config.proposal_types) == {"policy", "moderator"}
        assert governance_config.get_type("POLICY").support_threshold == 3

    def test_durations_are_parsed(self, governance_config):
        assert governance_config.get_type("policy").vote_duration == timedelta(hours=24)
        assert governance_config.get_type("moderator").vote_duration == timedelta(hours=1)

    def test_moderator_type_defaults_to_moderator_action(self, governance_config):
        assert governance_config.get_type("moderator").moderator_action is True
        assert governance_config.get_type("policy").moderator_action is False

    def test_scan_limits_default(self, governance_config):
        assert governance_config.pending_scan_limit == 50
        assert governance_config.resolution_scan_limit == 100

    def test_unknown_type_raises(self, governance_config):
        with pytest.raises(ConfigurationMissing) as exc_info:
            governance_config.get_type("treasury")
        assert exc_info.value.type_name == "treasury"

    def test_channel_cannot_be_debate_and_vote(self):
        data = make_config_data(voteChannelId=POLICY_DEBATE)
        with pytest.raises(ValidationError):
            GovernanceConfigDto.model_validate(data)

    def test_channel_cannot_serve_two_types(self):
        data = make_config_data()
        data["proposalTypes"]["moderator"]["voteChannelId"] = POLICY_VOTE
        with pytest.raises(ValidationError):
            GovernanceConfigDto.model_validate(data)

    def test_type_names_differing_only_in_case_are_rejected(self):
        data = make_config_data()
        data["proposalTypes"]["policy"] = {
            **data["proposalTypes"]["Policy"],
            "debateChannelId": 3001,
            "voteChannelId": 3002,
        }
        with pytest.raises(ValidationError, match="policy"):
            GovernanceConfigDto.model_validate(data)

    def test_resolutions_channel_may_be_shared(self):
        data = make_config_data()
        shared = data["proposalTypes"]["Policy"]["resolutionsChannelId"]
        data["proposalTypes"]["moderator"]["resolutionsChannelId"] = shared
        config = GovernanceConfigDto.model_validate(data)
        assert config.get_type("moderator").resolutions_channel_id == shared

    @pytest.mark.parametrize(
        "override",
        [{"supportThreshold": 0}, {"formats": []}, {"formats": ["  "]}, {"voteDuration": "soon"}],
    )
    def test_invalid_type_settings(self, override):
        with pytest.raises(ValidationError):
            GovernanceConfigDto.model_validate(make_config_data(**override))

    def test_from_bot_config_reads_moderator_role(self):
        data = make_config_data()
        del data["moderatorRoleId"]
        config = GovernanceConfigDto.from_bot_config(
            {"governance": data, "roles": {"moderator": str(MODERATOR_ROLE_ID)}}
        )
        assert config.moderator_role_id == MODERATOR_ROLE_ID
