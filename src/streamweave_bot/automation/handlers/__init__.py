"""Category step handlers and the dispatch registry."""

from __future__ import annotations

from .action_control import ActionControlHandlers
from .base import (
    HandlerGroup,
    HandlerRegistry,
    HandlerServices,
    StepHandler,
    StepResult,
)
from .broker import BrokerHandlers
from .chat import ChannelHandlers, ChatHandlers, ModerationHandlers, UserLookupHandlers
from .core import CoreHandlers, compare
from .date_time import DateTimeHandlers, format_timestamp
from .files import FileHandlers
from .media import MediaHandlers
from .network import NetworkHandlers
from .scenes import SceneHandlers
from .variables import VariableHandlers, calculate

DEFAULT_HANDLER_GROUPS: tuple[type[HandlerGroup], ...] = (
    CoreHandlers,
    VariableHandlers,
    FileHandlers,
    MediaHandlers,
    NetworkHandlers,
    DateTimeHandlers,
    ActionControlHandlers,
    ChatHandlers,
    ModerationHandlers,
    ChannelHandlers,
    UserLookupHandlers,
    SceneHandlers,
    BrokerHandlers,
)


def create_default_registry(services: HandlerServices) -> HandlerRegistry:
    """Build a registry with every built-in handler group."""
    registry = HandlerRegistry()
    for group_class in DEFAULT_HANDLER_GROUPS:
        registry.register_group(group_class(services))
    return registry


__all__ = [
    "ActionControlHandlers",
    "BrokerHandlers",
    "ChannelHandlers",
    "ChatHandlers",
    "CoreHandlers",
    "DEFAULT_HANDLER_GROUPS",
    "DateTimeHandlers",
    "FileHandlers",
    "HandlerGroup",
    "HandlerRegistry",
    "HandlerServices",
    "MediaHandlers",
    "ModerationHandlers",
    "NetworkHandlers",
    "SceneHandlers",
    "StepHandler",
    "StepResult",
    "UserLookupHandlers",
    "VariableHandlers",
    "calculate",
    "compare",
    "create_default_registry",
    "format_timestamp",
]
