"""Test configuration hooks."""

from __future__ import annotations

import random
from typing import Any

import pytest

from streamweave_bot.automation import (
    ActionCatalog,
    AutomationEngine,
    Capabilities,
    CommandCatalog,
    CooldownTracker,
    ExecutionContext,
    HandlerServices,
    VariableStore,
)


# Configure anyio to only use asyncio backend (skip trio tests)
@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio to use only asyncio backend."""
    return "asyncio"


class RecordingPlatform:
    """Async stand-in for every platform capability; records each call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.scene = "Main"
        self.profiles: dict[str, dict[str, Any]] = {}

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def args_of(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    async def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    async def send_message(self, *args: Any) -> None:
        await self._record("send_message", *args)

    async def timeout_user(self, user: str, duration: int, reason: str = "") -> None:
        await self._record("timeout_user", user, duration, reason)

    async def ban_user(self, user: str, reason: str = "") -> None:
        await self._record("ban_user", user, reason)

    async def unban_user(self, user: str) -> None:
        await self._record("unban_user", user)

    async def clear_chat(self) -> None:
        await self._record("clear_chat")

    async def set_slow_mode(self, enabled: bool, duration: int = 30) -> None:
        await self._record("set_slow_mode", enabled, duration)

    async def delete_message(self, message_id: str) -> None:
        await self._record("delete_message", message_id)

    async def set_title(self, title: str) -> None:
        await self._record("set_title", title)

    async def set_category(self, category: str) -> None:
        await self._record("set_category", category)

    async def create_marker(self, description: str = "") -> None:
        await self._record("create_marker", description)

    async def run_commercial(self, duration: int = 30) -> None:
        await self._record("run_commercial", duration)

    async def set_scene(self, scene: str) -> None:
        self.scene = scene
        await self._record("set_scene", scene)

    async def get_current_scene(self) -> str:
        return self.scene

    async def set_source_visibility(self, scene: str, source: str, state: int) -> None:
        await self._record("set_source_visibility", scene, source, state)

    async def set_text(self, source: str, text: str) -> None:
        await self._record("set_text", source, text)

    async def set_browser_source(self, source: str, url: str) -> None:
        await self._record("set_browser_source", source, url)

    async def set_media_source(self, source: str, file: str) -> None:
        await self._record("set_media_source", source, file)

    async def start_recording(self) -> None:
        await self._record("start_recording")

    async def stop_recording(self) -> None:
        await self._record("stop_recording")

    async def start_streaming(self) -> None:
        await self._record("start_streaming")

    async def stop_streaming(self) -> None:
        await self._record("stop_streaming")

    async def send_direct_message(self, user_id: str, text: str) -> None:
        await self._record("send_direct_message", user_id, text)

    async def add_role(self, guild_id: str, user_id: str, role_id: str) -> None:
        await self._record("add_role", guild_id, user_id, role_id)

    async def remove_role(self, guild_id: str, user_id: str, role_id: str) -> None:
        await self._record("remove_role", guild_id, user_id, role_id)

    async def create_channel(self, guild_id: str, name: str, kind: str = "text") -> None:
        await self._record("create_channel", guild_id, name, kind)

    async def get_user_by_login(self, login: str) -> dict[str, Any] | None:
        await self._record("get_user_by_login", login)
        return self.profiles.get(login.lower())

    async def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        await self._record("get_user_by_id", user_id)
        for profile in self.profiles.values():
            if profile.get("id") == user_id:
                return profile
        return None

    async def play(self, path: str, volume: float = 1.0, wait: bool = False) -> None:
        await self._record("play", path, volume, wait)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Replacement for asyncio.sleep that only records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def platform() -> RecordingPlatform:
    return RecordingPlatform()


@pytest.fixture
def capabilities(platform: RecordingPlatform, tmp_path) -> Capabilities:
    """Every capability backed by the recording platform; files under tmp_path."""
    return Capabilities.with_local_files(
        tmp_path,
        chat=platform,
        youtube_chat=platform,
        moderation=platform,
        channel=platform,
        scenes=platform,
        broker=platform,
        users=platform,
        sound=platform,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def variable_store(tmp_path) -> VariableStore:
    return VariableStore(tmp_path / "variables.json")


@pytest.fixture
def services(capabilities, variable_store, sleeper) -> HandlerServices:
    return HandlerServices(
        capabilities=capabilities,
        variables=variable_store,
        rng=random.Random(7),
        sleep=sleeper,
    )


@pytest.fixture
def context() -> ExecutionContext:
    return ExecutionContext(
        user="alice",
        message="!so bob",
        raw_input="bob",
        args={"input0": "bob", "rawInput": "bob"},
        variables={"user": "alice", "userName": "alice", "platform": "twitch"},
    )


@pytest.fixture
def engine(capabilities, variable_store, clock, sleeper) -> AutomationEngine:
    """Engine with recording capabilities, a fake clock and no real sleeping."""
    return AutomationEngine(
        commands=CommandCatalog(),
        actions=ActionCatalog(),
        capabilities=capabilities,
        variables=variable_store,
        cooldowns=CooldownTracker(clock=clock),
        rng=random.Random(3),
        sleep=sleeper,
    )
