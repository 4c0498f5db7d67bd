"""Tests for the trigger type catalog."""

from __future__ import annotations

from streamweave_bot.automation.models import TriggerType
from streamweave_bot.automation.triggers import TriggerCatalog, TriggerDefinition


class TestTriggerCatalog:
    """Tests for the bundled trigger definitions."""

    def test_bundled_definitions_load(self):
        catalog = TriggerCatalog()
        assert len(catalog) > 0
        ids = [definition.id for definition in catalog.all()]
        assert len(ids) == len(set(ids))

    def test_every_engine_trigger_type_is_described(self):
        catalog = TriggerCatalog()
        for trigger_type in TriggerType:
            assert catalog.get(trigger_type) is not None

    def test_command_trigger_variables(self):
        command = TriggerCatalog().get(401)
        names = {variable.name for variable in command.variables}
        assert {"commandId", "rawInput", "input0", "targetUser"} <= names
        assert command.platform is None

    def test_field_definitions(self):
        cheer = TriggerCatalog().get(TriggerType.CHEER)
        assert cheer.platform == "twitch"
        assert [field.name for field in cheer.fields] == ["minBits", "maxBits"]
        assert all(field.type == "number" for field in cheer.fields)

    def test_unknown_id(self):
        assert TriggerCatalog().get(99999) is None

    def test_by_category_prefix(self):
        catalog = TriggerCatalog()
        twitch = catalog.by_category("Twitch")
        assert twitch
        assert all(item.category.startswith("Twitch") for item in twitch)
        subs = catalog.by_category("Twitch/Subscriptions")
        assert {item.id for item in subs} >= {103, 104, 105, 106}

    def test_by_platform_includes_neutral(self):
        catalog = TriggerCatalog()
        kick = catalog.by_platform("Kick")
        assert any(item.platform == "kick" for item in kick)
        assert all(item.platform in (None, "kick") for item in kick)
        assert catalog.get(401) in kick

    def test_categories(self):
        categories = TriggerCatalog().categories()
        assert categories == sorted(categories)
        assert "Core" in categories
        assert "Twitch" in categories
        assert all("/" not in category for category in categories)


def test_custom_definitions():
    catalog = TriggerCatalog(
        [
            TriggerDefinition(id=1, name="One", category="A/B", description="first"),
            TriggerDefinition(id=2, name="Two", category="C", description="second", platform="discord"),
        ]
    )
    assert len(catalog) == 2
    assert catalog.categories() == ["A", "C"]
    assert [item.id for item in catalog.by_platform("twitch")] == [1]
    assert catalog.get(1).top_category == "A"
