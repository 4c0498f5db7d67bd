"""Automation runtime for chat commands and stream events.

This module provides:
- AutomationEngine: Matches events to actions and runs them
- Command, action and trigger catalogs
- StepInterpreter and the category step handlers
- Capability protocols for chat, moderation, scenes and other platforms
- Document loading, snapshots and hot reload
"""

from .actions import ActionCatalog
from .capabilities import (
    BrokerCapability,
    Capabilities,
    ChannelCapability,
    ChatCapability,
    FileCapability,
    LocalFileStore,
    ModerationCapability,
    SceneCapability,
    SoundCapability,
    UserLookupCapability,
)
from .commands import CommandCatalog
from .context import ExecutionContext
from .engine import AutomationEngine
from .exceptions import AutomationError, DocumentLoadError
from .handlers import HandlerRegistry, HandlerServices, StepResult, create_default_registry
from .interpreter import StepInterpreter
from .models import (
    Action,
    ActionQueue,
    AutomationEvent,
    AutomationSnapshot,
    Command,
    CommandLocation,
    CommandMode,
    CompareOperation,
    EventType,
    GrantType,
    Platform,
    SubAction,
    SubActionType,
    Trigger,
    TriggerType,
)
from .state import CooldownTracker, VariableStore
from .templating import render_template
from .triggers import TriggerCatalog, TriggerDefinition
from .watcher import AutomationFileWatcher, create_engine_watcher

__all__ = [
    # Engine
    "AutomationEngine",
    "AutomationError",
    "DocumentLoadError",
    "ExecutionContext",
    "StepInterpreter",
    # Catalogs
    "ActionCatalog",
    "CommandCatalog",
    "TriggerCatalog",
    "TriggerDefinition",
    # Models
    "Action",
    "ActionQueue",
    "AutomationEvent",
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
    # Handlers
    "HandlerRegistry",
    "HandlerServices",
    "StepResult",
    "create_default_registry",
    # Capabilities
    "BrokerCapability",
    "Capabilities",
    "ChannelCapability",
    "ChatCapability",
    "FileCapability",
    "LocalFileStore",
    "ModerationCapability",
    "SceneCapability",
    "SoundCapability",
    "UserLookupCapability",
    # State
    "CooldownTracker",
    "VariableStore",
    "render_template",
    # Hot reload
    "AutomationFileWatcher",
    "create_engine_watcher",
]
