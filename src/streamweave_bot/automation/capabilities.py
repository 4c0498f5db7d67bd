"""Collaborator interfaces used by step handlers.

Handlers never talk to a platform directly; they go through the narrow
protocols below. Methods may be plain or ``async``: handlers await the result
when it is awaitable. A capability left as ``None`` in :class:`Capabilities`
is treated as unavailable.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


async def resolve(result: Any) -> Any:
    """Await ``result`` if a capability returned an awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result


@runtime_checkable
class ChatCapability(Protocol):
    """Sends chat messages on one platform."""

    def send_message(self, text: str, as_bot: bool = True) -> Any:
        ...


@runtime_checkable
class ModerationCapability(Protocol):
    """Chat moderation operations."""

    def timeout_user(self, user: str, duration: int, reason: str = "") -> Any:
        ...

    def ban_user(self, user: str, reason: str = "") -> Any:
        ...

    def unban_user(self, user: str) -> Any:
        ...

    def clear_chat(self) -> Any:
        ...

    def set_slow_mode(self, enabled: bool, duration: int = 30) -> Any:
        ...

    def delete_message(self, message_id: str) -> Any:
        ...


@runtime_checkable
class ChannelCapability(Protocol):
    """Channel metadata and broadcast operations."""

    def set_title(self, title: str) -> Any:
        ...

    def set_category(self, category: str) -> Any:
        ...

    def create_marker(self, description: str = "") -> Any:
        ...

    def run_commercial(self, duration: int = 30) -> Any:
        ...


@runtime_checkable
class SceneCapability(Protocol):
    """Broadcast-software scene control.

    ``set_source_visibility`` takes ``state`` 0 (hide), 1 (show) or 2 (toggle).
    """

    def set_scene(self, scene: str) -> Any:
        ...

    def get_current_scene(self) -> Any:
        ...

    def set_source_visibility(self, scene: str, source: str, state: int) -> Any:
        ...

    def set_text(self, source: str, text: str) -> Any:
        ...

    def set_browser_source(self, source: str, url: str) -> Any:
        ...

    def set_media_source(self, source: str, file: str) -> Any:
        ...

    def start_recording(self) -> Any:
        ...

    def stop_recording(self) -> Any:
        ...

    def start_streaming(self) -> Any:
        ...

    def stop_streaming(self) -> Any:
        ...


@runtime_checkable
class BrokerCapability(Protocol):
    """Community message broker (guild server) operations."""

    def send_message(self, channel_id: str, text: str) -> Any:
        ...

    def send_direct_message(self, user_id: str, text: str) -> Any:
        ...

    def add_role(self, guild_id: str, user_id: str, role_id: str) -> Any:
        ...

    def remove_role(self, guild_id: str, user_id: str, role_id: str) -> Any:
        ...

    def create_channel(self, guild_id: str, name: str, kind: str = "text") -> Any:
        ...


@runtime_checkable
class UserLookupCapability(Protocol):
    """Resolves platform user profiles.

    Both methods return a mapping (``id``, ``login``, ``display_name``,
    ``type``, ``broadcaster_type``, ``description``, ``profile_image_url``,
    ``created_at``) or ``None`` when the user does not exist.
    """

    def get_user_by_login(self, login: str) -> Any:
        ...

    def get_user_by_id(self, user_id: str) -> Any:
        ...


@runtime_checkable
class FileCapability(Protocol):
    """Text file access for read/write steps."""

    def read_text(self, path: str) -> Any:
        ...

    def write_text(self, path: str, text: str, append: bool = False) -> Any:
        ...


@runtime_checkable
class SoundCapability(Protocol):
    """Audio playback."""

    def play(self, path: str, volume: float = 1.0, wait: bool = False) -> Any:
        ...


class LocalFileStore:
    """File capability backed by the local filesystem.

    Relative paths resolve against ``base_dir`` when one is given. Blocking
    IO runs in a worker thread.
    """

    def __init__(self, base_dir: str | Path | None = None, encoding: str = "utf-8") -> None:
        self.base_dir = Path(base_dir) if base_dir else None
        self.encoding = encoding

    def _resolve_path(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if self.base_dir is not None and not candidate.is_absolute():
            candidate = self.base_dir / candidate
        return candidate

    async def read_text(self, path: str) -> str:
        return await asyncio.to_thread(self._resolve_path(path).read_text, encoding=self.encoding)

    async def write_text(self, path: str, text: str, append: bool = False) -> None:
        await asyncio.to_thread(self._write, self._resolve_path(path), text, append)

    def _write(self, target: Path, text: str, append: bool) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a" if append else "w", encoding=self.encoding) as handle:
            handle.write(text)


@dataclass
class Capabilities:
    """Bundle of collaborators handed to the step handlers."""

    chat: ChatCapability | None = None
    youtube_chat: ChatCapability | None = None
    moderation: ModerationCapability | None = None
    channel: ChannelCapability | None = None
    scenes: SceneCapability | None = None
    broker: BrokerCapability | None = None
    users: UserLookupCapability | None = None
    files: FileCapability | None = None
    sound: SoundCapability | None = None

    @classmethod
    def with_local_files(cls, base_dir: str | Path | None = None, **kwargs: Any) -> Capabilities:
        return cls(files=LocalFileStore(base_dir), **kwargs)


__all__ = [
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
    "resolve",
]
