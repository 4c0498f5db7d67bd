"""Tests for the automation data model."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from streamweave_bot.automation.models import (
    Action,
    AutomationEvent,
    Command,
    CommandMode,
    EventType,
    GrantType,
    Platform,
    SubAction,
    SubActionType,
    Trigger,
    TriggerType,
)


class TestPlatform:
    """Tests for the platform flag set."""

    def test_from_name(self):
        assert Platform.from_name("discord") == Platform.DISCORD
        assert Platform.from_name("  YouTube ") == Platform.YOUTUBE
        assert Platform.from_name("kick") == Platform.KICK

    def test_unknown_name_falls_back_to_twitch(self):
        assert Platform.from_name("myspace") == Platform.TWITCH
        assert Platform.from_name(None) == Platform.TWITCH

    def test_coerce_bitmask_and_names(self):
        assert Platform.coerce(5) == Platform.TWITCH | Platform.YOUTUBE
        assert Platform.coerce("3") == Platform.TWITCH | Platform.DISCORD
        assert Platform.coerce(["twitch", "kick"]) == Platform.TWITCH | Platform.KICK

    def test_coerce_rejects_bool(self):
        with pytest.raises(ValueError):
            Platform.coerce(True)


class TestCommand:
    """Tests for the Command model."""

    def test_defaults(self):
        command = Command()
        assert command.id
        assert command.name == "New Command"
        assert command.command == "!newcommand"
        assert command.mode == CommandMode.EXACT
        assert command.sources == Platform.TWITCH
        assert command.global_cooldown == 0

    def test_accepts_camel_case_document(self):
        command = Command.model_validate(
            {
                "id": "c1",
                "command": "!so",
                "globalCooldown": 30,
                "userCooldown": 5,
                "caseSensitive": True,
                "sources": 3,
                "unknownField": "ignored",
            }
        )
        assert command.global_cooldown == 30
        assert command.user_cooldown == 5
        assert command.case_sensitive is True
        assert command.applies_to(Platform.DISCORD)
        assert not command.applies_to(Platform.YOUTUBE)

    def test_negative_cooldown_rejected(self):
        with pytest.raises(ValidationError):
            Command(global_cooldown=-1)

    def test_to_document_uses_camel_case(self):
        document = Command(id="c1", global_cooldown=10).to_document()
        assert document["globalCooldown"] == 10
        assert document["sources"] == 1
        assert "global_cooldown" not in document

    def test_merged_accepts_field_names_and_aliases(self):
        command = Command(id="c1", command="!a")
        updated = command.merged({"command": "!b", "userCooldown": 4})
        assert updated.id == "c1"
        assert updated.command == "!b"
        assert updated.user_cooldown == 4

    def test_permissions(self):
        everyone = Command()
        assert everyone.is_permitted(None)

        restricted = Command(
            grant_type=GrantType.SPECIFIC_USERS_GROUPS, permitted_users=["Alice", "@bob"]
        )
        assert restricted.is_permitted("alice")
        assert restricted.is_permitted("@BOB")
        assert not restricted.is_permitted("carol")
        assert not restricted.is_permitted(None)


class TestTrigger:
    """Tests for the Trigger model."""

    def test_known_type_becomes_enum(self):
        trigger = Trigger(type=101)
        assert trigger.type is TriggerType.FOLLOW

    def test_unknown_type_kept_as_int(self):
        trigger = Trigger(type=8001)
        assert trigger.type == 8001

    def test_exclusions_are_case_insensitive(self):
        trigger = Trigger(exclusions=["NightBot", "@streamelements"])
        assert trigger.excludes("nightbot")
        assert trigger.excludes("StreamElements")
        assert not trigger.excludes("alice")
        assert not trigger.excludes(None)


class TestSubAction:
    """Tests for steps and the branch invariant."""

    def test_extra_fields_read_by_either_name(self):
        step = SubAction.model_validate({"type": 10, "message": "hi", "useBot": False})
        assert step.get("message") == "hi"
        assert step.get("use_bot") is False
        assert step.get("missing", "fallback") == "fallback"

    def test_null_extra_field_yields_default(self):
        step = SubAction.model_validate({"type": 10, "message": None})
        assert step.get("message", "x") == "x"

    def test_branch_synthesizes_missing_blocks(self):
        step = SubAction(type=SubActionType.IF_ELSE)
        assert [child.type for child in step.sub_actions] == [
            SubActionType.IF_BLOCK,
            SubActionType.ELSE_BLOCK,
        ]
        assert step.block(True).sub_actions == []
        assert step.block(False).sub_actions == []

    def test_branch_moves_stray_children_into_true_block(self):
        step = SubAction.model_validate(
            {
                "type": 120,
                "subActions": [
                    {"type": 99902, "subActions": [{"id": "no", "type": 10}]},
                    {"id": "stray", "type": 10},
                ],
            }
        )
        assert [child.id for child in step.block(True).sub_actions] == ["stray"]
        assert [child.id for child in step.block(False).sub_actions] == ["no"]
        assert len(step.sub_actions) == 2

    def test_block_on_non_branch_raises(self):
        with pytest.raises(ValueError):
            SubAction(type=SubActionType.SEND_MESSAGE).block(True)

    def test_round_trip_keeps_extra_fields(self):
        step = SubAction.model_validate({"id": "s1", "type": 1007, "url": "https://x", "method": "POST"})
        document = step.to_document()
        assert document["url"] == "https://x"
        assert document["method"] == "POST"


class TestAction:
    def test_document_aliases(self):
        action = Action.model_validate(
            {"id": "a1", "alwaysRun": True, "excludeFromHistory": True, "subActions": [{"type": 10}]}
        )
        assert action.always_run is True
        assert action.exclude_from_history is True
        assert action.concurrent is False
        assert action.to_document()["subActions"][0]["type"] == 10


class TestAutomationEvent:
    """Tests for inbound event normalisation."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("command", EventType.COMMAND),
            ("channel-point-redemption", EventType.CHANNEL_POINT_REWARD),
            ("channelPointReward", EventType.CHANNEL_POINT_REWARD),
            ("gift_sub", EventType.GIFT_SUB),
            ("Raid", EventType.RAID),
        ],
    )
    def test_event_type_aliases(self, raw, expected):
        assert AutomationEvent(type=raw).type is expected

    def test_unknown_event_type_rejected(self):
        with pytest.raises(ValidationError):
            AutomationEvent(type="hosted")

    def test_null_data_becomes_empty(self):
        event = AutomationEvent.model_validate({"type": "follow", "data": None})
        assert event.data == {}

    def test_trigger_type_mapping(self):
        assert EventType.FOLLOW.trigger_type is TriggerType.FOLLOW
        assert EventType.CHANNEL_POINT_REWARD.trigger_type is TriggerType.CHANNEL_POINT_REWARD
        assert EventType.COMMAND.trigger_type is None
