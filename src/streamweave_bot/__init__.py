"""Streamweave chat-bot automation runtime.

Turns live-stream platform events (chat commands, follows, cheers,
subscriptions, raids, channel-point redemptions) into configured sequences
of steps:
- Command matching with cooldowns and permissions
- Tree-shaped step scripts with branching, break and Run Action
- ``%var%`` templating over event arguments and variables
- Pluggable platform capabilities (chat, moderation, scenes, broker)
- Hot-reload of the JSON automation documents

Example:
    ```python
    import asyncio

    from streamweave_bot import AutomationEngine, BotConfig

    engine = AutomationEngine.from_config(BotConfig.load("config.yaml"))
    asyncio.run(
        engine.process_event({"type": "command", "user": "alice", "message": "!so bob"})
    )
    ```
"""

from importlib.metadata import PackageNotFoundError, version

from .automation import (
    AutomationEngine,
    AutomationEvent,
    Capabilities,
    TriggerCatalog,
)
from .core import (
    BotConfig,
    get_logger,
    setup_logging,
)

__all__ = [
    "__version__",
    "AutomationEngine",
    "AutomationEvent",
    "BotConfig",
    "Capabilities",
    "TriggerCatalog",
    "get_logger",
    "setup_logging",
]

try:  # pragma: no cover - best-effort during development
    __version__ = version("streamweave-bot")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
