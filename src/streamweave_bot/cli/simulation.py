"""Console-backed capabilities used by ``streamweave-bot simulate``."""

from __future__ import annotations

from typing import Any

from rich.console import Console

from ..automation import Capabilities


class ConsolePlatform:
    """Prints every capability call instead of talking to a platform.

    One instance serves as chat, moderation, channel, scene, broker, user
    lookup and sound capability; calls are also kept in :attr:`calls`.
    """

    def __init__(self, console: Console | None = None, label: str = "twitch") -> None:
        self.console = console or Console()
        self.label = label
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.current_scene = "Main"

    def _emit(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        rendered = ", ".join(repr(arg) for arg in args)
        self.console.print(f"[cyan]{self.label}[/] [bold]{operation}[/]({rendered})", highlight=False)

    # ---- Chat ----
    def send_message(self, *args: Any) -> None:
        self._emit("send_message", *args)

    # ---- Moderation ----
    def timeout_user(self, user: str, duration: int, reason: str = "") -> None:
        self._emit("timeout_user", user, duration, reason)

    def ban_user(self, user: str, reason: str = "") -> None:
        self._emit("ban_user", user, reason)

    def unban_user(self, user: str) -> None:
        self._emit("unban_user", user)

    def clear_chat(self) -> None:
        self._emit("clear_chat")

    def set_slow_mode(self, enabled: bool, duration: int = 30) -> None:
        self._emit("set_slow_mode", enabled, duration)

    def delete_message(self, message_id: str) -> None:
        self._emit("delete_message", message_id)

    # ---- Channel ----
    def set_title(self, title: str) -> None:
        self._emit("set_title", title)

    def set_category(self, category: str) -> None:
        self._emit("set_category", category)

    def create_marker(self, description: str = "") -> None:
        self._emit("create_marker", description)

    def run_commercial(self, duration: int = 30) -> None:
        self._emit("run_commercial", duration)

    # ---- Scenes ----
    def set_scene(self, scene: str) -> None:
        self.current_scene = scene
        self._emit("set_scene", scene)

    def get_current_scene(self) -> str:
        return self.current_scene

    def set_source_visibility(self, scene: str, source: str, state: int) -> None:
        self._emit("set_source_visibility", scene, source, state)

    def set_text(self, source: str, text: str) -> None:
        self._emit("set_text", source, text)

    def set_browser_source(self, source: str, url: str) -> None:
        self._emit("set_browser_source", source, url)

    def set_media_source(self, source: str, file: str) -> None:
        self._emit("set_media_source", source, file)

    def start_recording(self) -> None:
        self._emit("start_recording")

    def stop_recording(self) -> None:
        self._emit("stop_recording")

    def start_streaming(self) -> None:
        self._emit("start_streaming")

    def stop_streaming(self) -> None:
        self._emit("stop_streaming")

    # ---- Broker ----
    def send_direct_message(self, user_id: str, text: str) -> None:
        self._emit("send_direct_message", user_id, text)

    def add_role(self, guild_id: str, user_id: str, role_id: str) -> None:
        self._emit("add_role", guild_id, user_id, role_id)

    def remove_role(self, guild_id: str, user_id: str, role_id: str) -> None:
        self._emit("remove_role", guild_id, user_id, role_id)

    def create_channel(self, guild_id: str, name: str, kind: str = "text") -> None:
        self._emit("create_channel", guild_id, name, kind)

    # ---- Users ----
    def get_user_by_login(self, login: str) -> dict[str, Any]:
        return {"id": "0", "login": login.lower(), "display_name": login}

    def get_user_by_id(self, user_id: str) -> dict[str, Any]:
        return {"id": user_id, "login": f"user{user_id}", "display_name": f"User{user_id}"}

    # ---- Sound ----
    def play(self, path: str, volume: float = 1.0, wait: bool = False) -> None:
        self._emit("play", path, volume, wait)


def console_capabilities(console: Console | None = None, files_dir: str | None = None) -> Capabilities:
    """Capabilities that print to ``console``; files go to ``files_dir``."""
    console = console or Console()
    platform = ConsolePlatform(console)
    return Capabilities.with_local_files(
        files_dir,
        chat=platform,
        youtube_chat=ConsolePlatform(console, label="youtube"),
        moderation=platform,
        channel=platform,
        scenes=platform,
        broker=ConsolePlatform(console, label="broker"),
        users=platform,
        sound=platform,
    )


__all__ = ["ConsolePlatform", "console_capabilities"]
