"""Data model for commands, actions, triggers and steps.

Persisted documents use camelCase keys (``globalCooldown``, ``subActions``...);
every model accepts both camelCase and snake_case names and ignores keys it
does not know about, except :class:`SubAction` which keeps them as its
free-form field bag.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum, IntEnum, IntFlag
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..core.logger import get_logger

logger = get_logger("automation.models")


def new_id() -> str:
    """Generate a new entity id."""
    return str(uuid.uuid4())


class Platform(IntFlag):
    """Set of chat platforms, persisted as the integer bitmask."""

    NONE = 0
    TWITCH = 1
    DISCORD = 2
    YOUTUBE = 4
    KICK = 8

    @classmethod
    def from_name(cls, name: str | None) -> Platform:
        """Map a platform name to its flag; unknown names fall back to Twitch."""
        return _PLATFORM_NAMES.get((name or "").strip().lower(), cls.TWITCH)

    @classmethod
    def coerce(cls, value: Any) -> Platform:
        """Build a flag set from a bitmask, a name or a collection of names."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError("platform flags must be an integer or platform names")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            if value.strip().isdigit():
                return cls(int(value))
            return cls.from_name(value)
        if isinstance(value, Iterable):
            result = cls.NONE
            for item in value:
                result |= cls.coerce(item)
            return result
        raise ValueError(f"Cannot interpret platform flags: {value!r}")


_PLATFORM_NAMES: dict[str, Platform] = {
    "twitch": Platform.TWITCH,
    "discord": Platform.DISCORD,
    "youtube": Platform.YOUTUBE,
    "kick": Platform.KICK,
}


class CommandMode(IntEnum):
    """How a command's trigger text is compared with chat text."""

    EXACT = 0
    REGEX = 1


class CommandLocation(IntEnum):
    """Where a literal trigger must appear in the message."""

    START = 0
    ANYWHERE = 1


class GrantType(IntEnum):
    """Who may fire a command."""

    EVERYONE = 0
    SPECIFIC_USERS_GROUPS = 1


class TriggerType(IntEnum):
    """Trigger type tags understood by the action catalog."""

    FOLLOW = 101
    CHEER = 102
    SUBSCRIBE = 103
    RESUB = 104
    GIFT_SUB = 105
    GIFT_BOMB = 106
    RAID = 107
    CHANNEL_POINT_REWARD = 112
    COMMAND = 401


class SubActionType(IntEnum):
    """Step type tags; values match the persisted documents."""

    PLAY_SOUND = 1
    WRITE_TO_FILE = 3
    RUN_ACTION = 4
    SEND_MESSAGE = 10
    TWITCH_SLOW_MODE = 14
    TWITCH_SET_TITLE = 15
    TWITCH_SET_GAME = 16
    TWITCH_CREATE_MARKER = 17
    GET_DATE_TIME = 21
    OBS_SET_SCENE = 25
    OBS_TOGGLE_SOURCE = 30
    OBS_SET_TEXT = 31
    OBS_SET_BROWSER_SOURCE = 32
    GET_USER_INFO = 50
    GET_USER_INFO_BY_LOGIN = 51
    IF_ELSE = 120
    GET_GLOBAL_VAR = 121
    SET_GLOBAL_VAR = 122
    SET_ARGUMENT = 123
    BREAK = 124
    OBS_SET_MEDIA_SOURCE = 322
    WAIT = 1002
    RANDOM_NUMBER = 1003
    ACTION_STATE = 1004
    HTTP_REQUEST = 1007
    COMMENT = 1009
    SET_USER_VAR = 1050
    GET_USER_VAR = 1051
    MATH_OPERATION = 1052
    STRING_OPERATION = 1053
    TWITCH_DELETE_MESSAGE = 2001
    TWITCH_CLEAR_CHAT = 2002
    TWITCH_TIMEOUT_USER = 2003
    TWITCH_BAN_USER = 2004
    TWITCH_UNBAN_USER = 2005
    TWITCH_RUN_COMMERCIAL = 2010
    OBS_GET_CURRENT_SCENE = 3001
    OBS_START_RECORDING = 3010
    OBS_STOP_RECORDING = 3011
    OBS_START_STREAMING = 3020
    OBS_STOP_STREAMING = 3021
    READ_FROM_FILE = 4001
    DISCORD_SEND_MESSAGE = 5001
    DISCORD_SEND_DM = 5002
    DISCORD_ADD_ROLE = 5003
    DISCORD_REMOVE_ROLE = 5004
    DISCORD_CREATE_CHANNEL = 5005
    YOUTUBE_SEND_MESSAGE = 6001
    IF_BLOCK = 99901
    ELSE_BLOCK = 99902


class CompareOperation(IntEnum):
    """Operators of the conditional-branch step."""

    EQUALS = 0
    NOT_EQUALS = 1
    CONTAINS = 2
    NOT_CONTAINS = 3
    STARTS_WITH = 4
    ENDS_WITH = 5
    IS_EMPTY = 6
    IS_NOT_EMPTY = 7
    GREATER_THAN = 8
    GREATER_OR_EQUAL = 9
    LESS_THAN = 10
    LESS_OR_EQUAL = 11
    REGEX = 12


class EventType(str, Enum):
    """Kinds of inbound automation events."""

    COMMAND = "command"
    FOLLOW = "follow"
    CHEER = "cheer"
    SUBSCRIBE = "subscribe"
    RESUB = "resub"
    GIFT_SUB = "giftSub"
    GIFT_BOMB = "giftBomb"
    RAID = "raid"
    CHANNEL_POINT_REWARD = "channelPointReward"

    @classmethod
    def _missing_(cls, value: object) -> EventType | None:
        if not isinstance(value, str):
            return None
        key = value.replace("-", "").replace("_", "").replace(" ", "").lower()
        key = _EVENT_ALIASES.get(key, key)
        for member in cls:
            if member.value.lower() == key:
                return member
        return None

    @property
    def trigger_type(self) -> TriggerType | None:
        """Trigger type fired by this event kind (None for commands)."""
        return _EVENT_TRIGGERS.get(self)


_EVENT_ALIASES = {
    "channelpointredemption": "channelpointreward",
    "redemption": "channelpointreward",
    "resubscribe": "resub",
    "giftsubscription": "giftsub",
}

_EVENT_TRIGGERS = {
    EventType.FOLLOW: TriggerType.FOLLOW,
    EventType.CHEER: TriggerType.CHEER,
    EventType.SUBSCRIBE: TriggerType.SUBSCRIBE,
    EventType.RESUB: TriggerType.RESUB,
    EventType.GIFT_SUB: TriggerType.GIFT_SUB,
    EventType.GIFT_BOMB: TriggerType.GIFT_BOMB,
    EventType.RAID: TriggerType.RAID,
    EventType.CHANNEL_POINT_REWARD: TriggerType.CHANNEL_POINT_REWARD,
}


def _known_tag(value: int, enum_type: type[IntEnum]) -> int:
    try:
        return enum_type(value)
    except ValueError:
        return value


class AutomationModel(BaseModel):
    """Base model for persisted automation entities."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize using the persisted (camelCase) key names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def merged(self: ModelT, changes: Mapping[str, Any]) -> ModelT:
        """Return a re-validated copy with ``changes`` applied.

        ``changes`` may use field names or their camelCase aliases.
        """
        aliases = {name: info.alias or name for name, info in type(self).model_fields.items()}
        data = self.model_dump(mode="json", by_alias=True)
        for key, value in changes.items():
            data[aliases.get(key, key)] = value
        return type(self).model_validate(data)


ModelT = TypeVar("ModelT", bound=AutomationModel)


class Command(AutomationModel):
    """A chat command definition."""

    id: str = Field(default_factory=new_id, description="Command id")
    name: str = Field(default="New Command", description="Display name")
    enabled: bool = Field(default=True)
    command: str = Field(default="!newcommand", description="Trigger text or pattern")
    mode: CommandMode = Field(default=CommandMode.EXACT)
    regex_explicit_capture: bool = Field(default=False)
    location: CommandLocation = Field(default=CommandLocation.START)
    case_sensitive: bool = Field(default=False)
    sources: Platform = Field(default=Platform.TWITCH, description="Platforms this applies to")
    global_cooldown: float = Field(default=0, ge=0, description="Global cooldown in seconds")
    user_cooldown: float = Field(default=0, ge=0, description="Per-user cooldown in seconds")
    group: str | None = Field(default=None)
    grant_type: GrantType = Field(default=GrantType.EVERYONE)
    permitted_users: list[str] = Field(default_factory=list)
    permitted_groups: list[str] = Field(default_factory=list)

    @field_validator("sources", mode="before")
    @classmethod
    def _coerce_sources(cls, value: Any) -> Platform:
        return Platform.coerce(value)

    def applies_to(self, platform: Platform) -> bool:
        """Bitwise membership test against the command's platform set."""
        return bool(self.sources & platform)

    def is_permitted(self, user: str | None) -> bool:
        if self.grant_type == GrantType.EVERYONE:
            return True
        if not user:
            return False
        allowed = {name.strip().lstrip("@").lower() for name in self.permitted_users}
        return user.strip().lstrip("@").lower() in allowed


class Trigger(AutomationModel):
    """Binds an action to a class of events."""

    id: str = Field(default_factory=new_id)
    type: int = Field(default=TriggerType.COMMAND, description="Trigger type tag")
    enabled: bool = Field(default=True)
    exclusions: list[str] = Field(default_factory=list, description="Usernames to ignore")
    command_id: str | None = Field(default=None)
    min: float | None = Field(default=None)
    max: float | None = Field(default=None)
    tiers: int | None = Field(default=None)
    reward_id: str | None = Field(default=None)

    @field_validator("type", mode="after")
    @classmethod
    def _known_type(cls, value: int) -> int:
        return _known_tag(value, TriggerType)

    def excludes(self, user: str | None) -> bool:
        if not user or not self.exclusions:
            return False
        lowered = user.strip().lstrip("@").lower()
        return any(name.strip().lstrip("@").lower() == lowered for name in self.exclusions)


class SubAction(AutomationModel):
    """One node of an action's step tree.

    Type-specific settings (message text, URL, variable name, ...) are kept in
    the model's extra fields and read with :meth:`get`.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str = Field(default_factory=new_id)
    type: int = Field(default=SubActionType.SEND_MESSAGE, description="Step type tag")
    enabled: bool = Field(default=True)
    weight: float = Field(default=0, description="Weight for random selection")
    parent_id: str | None = Field(default=None)
    index: int = Field(default=0, description="Position among siblings")
    sub_actions: list[SubAction] | None = Field(default=None)
    random: bool = Field(default=False, description="Run one random child instead of all")

    @field_validator("type", mode="after")
    @classmethod
    def _known_type(cls, value: int) -> int:
        return _known_tag(value, SubActionType)

    @model_validator(mode="after")
    def _ensure_branch_blocks(self) -> SubAction:
        if self.type != SubActionType.IF_ELSE:
            return self

        true_block: SubAction | None = None
        false_block: SubAction | None = None
        strays: list[SubAction] = []
        for child in self.sub_actions or []:
            if child.type == SubActionType.IF_BLOCK and true_block is None:
                true_block = child
            elif child.type == SubActionType.ELSE_BLOCK and false_block is None:
                false_block = child
            else:
                strays.append(child)

        if true_block is None:
            true_block = SubAction(type=SubActionType.IF_BLOCK, parent_id=self.id, index=0)
        if false_block is None:
            false_block = SubAction(type=SubActionType.ELSE_BLOCK, parent_id=self.id, index=1)
        if true_block.sub_actions is None:
            true_block.sub_actions = []
        if false_block.sub_actions is None:
            false_block.sub_actions = []

        for stray in strays:
            logger.warning(
                "Branch step %s has a stray child %s (type %s); moving it into the true block",
                self.id,
                stray.id,
                stray.type,
            )
            if stray.type == SubActionType.ELSE_BLOCK:
                false_block.sub_actions.extend(stray.sub_actions or [])
            elif stray.type == SubActionType.IF_BLOCK:
                true_block.sub_actions.extend(stray.sub_actions or [])
            else:
                true_block.sub_actions.append(stray)

        self.sub_actions = [true_block, false_block]
        return self

    def get(self, name: str, default: Any = None) -> Any:
        """Read a type-specific field by snake_case or camelCase name.

        Missing and null values both yield ``default``.
        """
        extra = self.model_extra or {}
        for key in (name, to_camel(name)):
            value = extra.get(key)
            if value is not None:
                return value
        return default

    def block(self, condition: bool) -> SubAction:
        """Return the true or false block of a branch step."""
        wanted = SubActionType.IF_BLOCK if condition else SubActionType.ELSE_BLOCK
        for child in self.sub_actions or []:
            if child.type == wanted:
                return child
        raise ValueError(f"Step {self.id} is not a branch step")


class ActionQueue(AutomationModel):
    """Execution queue metadata carried by the actions document."""

    id: str = Field(default_factory=new_id)
    name: str = Field(default="Default")
    blocking: bool = Field(default=False, description="Run queued actions one at a time")
    paused: bool = Field(default=False)


class Action(AutomationModel):
    """A named set of triggers and a step tree."""

    id: str = Field(default_factory=new_id)
    name: str = Field(default="New Action")
    enabled: bool = Field(default=True)
    group: str | None = Field(default=None)
    always_run: bool = Field(default=False, description="Keep going after a failed step")
    random_action: bool = Field(default=False, description="Run one random top-level step")
    concurrent: bool = Field(default=False, description="Allow overlapping executions")
    exclude_from_history: bool = Field(default=False)
    queue: str | None = Field(default=None, description="Queue id")
    triggers: list[Trigger] = Field(default_factory=list)
    sub_actions: list[SubAction] = Field(default_factory=list)


class AutomationEvent(BaseModel):
    """Normalized inbound platform event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: EventType
    platform: str = Field(default="twitch")
    user: str | None = Field(default=None)
    message: str | None = Field(default=None)
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return EventType(value)
        return value

    @field_validator("data", mode="before")
    @classmethod
    def _default_data(cls, value: Any) -> Any:
        return {} if value is None else value


class AutomationSnapshot(AutomationModel):
    """Backup bundle of both collections."""

    commands: list[Command] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    queues: list[ActionQueue] = Field(default_factory=list)
    version: int = Field(default=1)
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


__all__ = [
    "Action",
    "ActionQueue",
    "AutomationEvent",
    "AutomationModel",
    "AutomationSnapshot",
    "Command",
    "CommandLocation",
    "CommandMode",
    "CompareOperation",
    "EventType",
    "GrantType",
    "Platform",
    "SubAction",
    "SubActionType",
    "Trigger",
    "TriggerType",
    "new_id",
]
