"""Tests for role-gated slash commands."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import discord
import pytest

from AgoraPact.share.auth.MissingRole import MissingRole
from AgoraPact.share.auth.RoleGuard import RoleGuard
from tests.fakes import MODERATOR_ROLE_ID

CONFIG = {"roles": {"moderator": str(MODERATOR_ROLE_ID)}}


def _make_interaction(role_ids, config=CONFIG, member: bool = True):
    interaction = MagicMock(spec=discord.Interaction)
    if member:
        user = MagicMock(spec=discord.Member)
        user.roles = [SimpleNamespace(id=role_id) for role_id in role_ids]
    else:
        user = MagicMock(spec=discord.User)
    user.id = 42
    interaction.user = user
    interaction.client = SimpleNamespace(config=config)
    return interaction


class TestResolveRoleIds:
    def test_roles_section(self):
        assert RoleGuard.resolve_role_ids(CONFIG, ["moderator"]) == {MODERATOR_ROLE_ID}

    def test_moderator_falls_back_to_governance(self):
        config = {"governance": {"moderatorRoleId": MODERATOR_ROLE_ID}}
        assert RoleGuard.resolve_role_ids(config, ["moderator"]) == {MODERATOR_ROLE_ID}

    def test_unknown_key_grants_nothing(self):
        assert RoleGuard.resolve_role_ids(CONFIG, ["admin"]) == set()


class TestHasRoles:
    def test_member_with_role(self):
        assert RoleGuard.hasRoles(_make_interaction([1, MODERATOR_ROLE_ID]), "moderator")

    def test_member_without_role(self):
        assert not RoleGuard.hasRoles(_make_interaction([1, 2]), "moderator")

    def test_direct_message_user(self):
        assert not RoleGuard.hasRoles(_make_interaction([], member=False), "moderator")


class TestRequireRoles:
    @pytest.mark.asyncio
    async def test_allows_and_denies(self):
        @RoleGuard.requireRoles("moderator")
        async def command(cog, interaction, message_id: str):
            return message_id

        assert await command(None, _make_interaction([MODERATOR_ROLE_ID]), "123") == "123"

        with pytest.raises(MissingRole) as exc_info:
            await command(None, _make_interaction([]), "123")
        assert str(exc_info.value) == "Sorry, you need the moderator role to do that."
