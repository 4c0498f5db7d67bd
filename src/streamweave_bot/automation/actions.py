"""Action catalog: actions, their triggers and step trees, queue metadata."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ..core.logger import get_logger
from .models import Action, ActionQueue, SubAction, Trigger, TriggerType

logger = get_logger("automation.actions")

ActionStateChange = bool | str


def _find_step(steps: list[SubAction], step_id: str) -> tuple[list[SubAction], int] | None:
    """Locate a step anywhere in a tree; returns its sibling list and position."""
    for position, step in enumerate(steps):
        if step.id == step_id:
            return steps, position
        if step.sub_actions:
            found = _find_step(step.sub_actions, step_id)
            if found is not None:
                return found
    return None


class ActionCatalog:
    """In-memory collection of actions, kept in insertion order."""

    def __init__(
        self,
        actions: Iterable[Action] | None = None,
        queues: Iterable[ActionQueue] | None = None,
    ) -> None:
        self._actions: dict[str, Action] = {}
        self._queues: dict[str, ActionQueue] = {}
        for action in actions or []:
            self._actions[action.id] = action
        for queue in queues or []:
            self._queues[queue.id] = queue

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._actions

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def create(self, config: Mapping[str, Any] | Action | None = None, **fields: Any) -> Action:
        if isinstance(config, Action):
            action = config.merged(fields) if fields else config
        else:
            action = Action.model_validate({**(config or {}), **fields})
        self._actions[action.id] = action
        logger.debug("Created action %s (%s)", action.name, action.id)
        return action

    def update(self, action_id: str, changes: Mapping[str, Any]) -> Action | None:
        existing = self._actions.get(action_id)
        if existing is None:
            return None
        updated = existing.merged({**changes, "id": action_id})
        self._actions[action_id] = updated
        return updated

    def delete(self, action_id: str) -> bool:
        return self._actions.pop(action_id, None) is not None

    def get(self, action_id: str) -> Action | None:
        return self._actions.get(action_id)

    def find_by_name(self, name: str) -> Action | None:
        lowered = name.strip().lower()
        for action in self._actions.values():
            if action.name.lower() == lowered:
                return action
        return None

    def all(self) -> list[Action]:
        return list(self._actions.values())

    def by_group(self, group: str) -> list[Action]:
        return [action for action in self._actions.values() if action.group == group]

    def groups(self) -> list[str]:
        return sorted({action.group for action in self._actions.values() if action.group})

    def reset(self) -> None:
        self._actions.clear()
        self._queues.clear()

    def replace(self, actions: Iterable[Action], queues: Iterable[ActionQueue] | None = None) -> None:
        self._actions = {action.id: action for action in actions}
        if queues is not None:
            self._queues = {queue.id: queue for queue in queues}

    def set_enabled(self, action_id: str, state: ActionStateChange) -> bool:
        """Enable, disable or toggle an action.

        Args:
            action_id: Action to change
            state: ``True``/``False`` or one of ``"enable"``, ``"disable"``, ``"toggle"``

        Returns:
            True if the action exists and the state was understood
        """
        action = self._actions.get(action_id)
        if action is None:
            return False

        if isinstance(state, bool):
            enabled = state
        else:
            keyword = str(state).strip().lower()
            if keyword in ("enable", "enabled", "on", "true", "1"):
                enabled = True
            elif keyword in ("disable", "disabled", "off", "false", "0"):
                enabled = False
            elif keyword in ("toggle", "2"):
                enabled = not action.enabled
            else:
                logger.warning("Unknown action state %r for action %s", state, action_id)
                return False

        action.enabled = enabled
        logger.info("Action %s %s", action.name, "enabled" if enabled else "disabled")
        return True

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------
    def add_trigger(self, action_id: str, trigger: Mapping[str, Any] | Trigger) -> Trigger | None:
        action = self._actions.get(action_id)
        if action is None:
            return None
        new_trigger = trigger if isinstance(trigger, Trigger) else Trigger.model_validate(trigger)
        action.triggers.append(new_trigger)
        return new_trigger

    def update_trigger(
        self, action_id: str, trigger_id: str, changes: Mapping[str, Any]
    ) -> Trigger | None:
        action = self._actions.get(action_id)
        if action is None:
            return None
        for position, trigger in enumerate(action.triggers):
            if trigger.id == trigger_id:
                updated = trigger.merged({**changes, "id": trigger_id})
                action.triggers[position] = updated
                return updated
        return None

    def remove_trigger(self, action_id: str, trigger_id: str) -> bool:
        action = self._actions.get(action_id)
        if action is None:
            return False
        remaining = [trigger for trigger in action.triggers if trigger.id != trigger_id]
        if len(remaining) == len(action.triggers):
            return False
        action.triggers = remaining
        return True

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def add_sub_action(
        self, action_id: str, sub_action: Mapping[str, Any] | SubAction
    ) -> SubAction | None:
        """Append a top-level step; its index defaults to the end of the list."""
        action = self._actions.get(action_id)
        if action is None:
            return None
        if isinstance(sub_action, SubAction):
            step = sub_action
        else:
            data = dict(sub_action)
            if "index" not in data:
                data["index"] = len(action.sub_actions)
            step = SubAction.model_validate(data)
        action.sub_actions.append(step)
        action.sub_actions.sort(key=lambda item: item.index)
        return step

    def update_sub_action(
        self, action_id: str, sub_action_id: str, changes: Mapping[str, Any]
    ) -> SubAction | None:
        action = self._actions.get(action_id)
        if action is None:
            return None
        found = _find_step(action.sub_actions, sub_action_id)
        if found is None:
            return None
        siblings, position = found
        updated = siblings[position].merged({**changes, "id": sub_action_id})
        siblings[position] = updated
        return updated

    def remove_sub_action(self, action_id: str, sub_action_id: str) -> bool:
        action = self._actions.get(action_id)
        if action is None:
            return False
        found = _find_step(action.sub_actions, sub_action_id)
        if found is None:
            return False
        siblings, position = found
        del siblings[position]
        return True

    def move_sub_action(self, action_id: str, sub_action_id: str, new_index: int) -> bool:
        action = self._actions.get(action_id)
        if action is None:
            return False
        found = _find_step(action.sub_actions, sub_action_id)
        if found is None:
            return False
        siblings, position = found
        siblings[position].index = new_index
        siblings.sort(key=lambda item: item.index)
        return True

    # ------------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------------
    def queues(self) -> list[ActionQueue]:
        return list(self._queues.values())

    def get_queue(self, queue_id: str | None) -> ActionQueue | None:
        if not queue_id:
            return None
        return self._queues.get(queue_id)

    def set_queues(self, queues: Iterable[ActionQueue]) -> None:
        self._queues = {queue.id: queue for queue in queues}

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def find_actions_by_trigger(
        self,
        trigger_type: TriggerType | int,
        event_data: Mapping[str, Any] | None = None,
        user: str | None = None,
    ) -> list[Action]:
        """Enabled actions owning an enabled trigger of ``trigger_type`` that accepts the event.

        Command triggers also need a matching ``commandId`` and channel-point
        triggers a matching ``rewardId``; triggers excluding ``user`` never match.
        """
        data = event_data or {}
        matched = []
        for action in self._actions.values():
            if not action.enabled:
                continue
            if any(self._trigger_matches(trigger, trigger_type, data, user) for trigger in action.triggers):
                matched.append(action)
        return matched

    @staticmethod
    def _trigger_matches(
        trigger: Trigger,
        trigger_type: TriggerType | int,
        data: Mapping[str, Any],
        user: str | None,
    ) -> bool:
        if not trigger.enabled or trigger.type != trigger_type:
            return False
        if trigger.excludes(user):
            return False
        if trigger_type == TriggerType.COMMAND:
            return trigger.command_id == data.get("commandId")
        if trigger_type == TriggerType.CHANNEL_POINT_REWARD:
            return trigger.reward_id == data.get("rewardId")
        return True

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------
    def export_actions(self) -> str:
        payload = {
            "actions": [action.to_document() for action in self._actions.values()],
            "version": 1,
            "timestamp": datetime.now().isoformat(),
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def import_actions(self, json_data: str) -> bool:
        """Upsert actions from an export document; all-or-nothing."""
        try:
            data = json.loads(json_data)
            entries = data.get("actions") if isinstance(data, dict) else None
            if not isinstance(entries, list):
                return False
            actions = [Action.model_validate(entry) for entry in entries]
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.warning("Action import rejected: %s", exc)
            return False

        for action in actions:
            self._actions[action.id] = action
        return True


__all__ = ["ActionCatalog"]
