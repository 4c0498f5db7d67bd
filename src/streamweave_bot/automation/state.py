"""Engine-owned mutable state: command cooldowns and stored variables."""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core.logger import get_logger

logger = get_logger("automation.state")


def _user_key(user: str | None) -> str:
    return (user or "").strip().lstrip("@").lower()


class CooldownTracker:
    """Global and per-user cooldown bookkeeping for commands.

    ``try_acquire`` checks both gates and stamps them in one step while
    holding a lock, so two near-simultaneous events for the same command and
    user cannot both pass.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._global: dict[str, float] = {}
        self._users: dict[str, dict[str, float]] = {}

    def remaining(
        self,
        command_id: str,
        global_cooldown: float,
        user_cooldown: float,
        user: str | None = None,
    ) -> float:
        """Seconds until the command may fire again for ``user``."""
        with self._lock:
            return self._remaining_locked(
                command_id, global_cooldown, user_cooldown, user, self._clock()
            )

    def _remaining_locked(
        self,
        command_id: str,
        global_cooldown: float,
        user_cooldown: float,
        user: str | None,
        now: float,
    ) -> float:
        wait = 0.0
        if global_cooldown > 0 and command_id in self._global:
            wait = max(wait, self._global[command_id] + global_cooldown - now)
        if user_cooldown > 0 and user:
            last = self._users.get(command_id, {}).get(_user_key(user))
            if last is not None:
                wait = max(wait, last + user_cooldown - now)
        return wait

    def try_acquire(
        self,
        command_id: str,
        global_cooldown: float,
        user_cooldown: float,
        user: str | None = None,
    ) -> bool:
        """Claim both gates if they are open.

        Returns:
            True if the command may fire; the firing time has been recorded.
            False if a gate is closed; nothing was changed.
        """
        with self._lock:
            now = self._clock()
            if self._remaining_locked(command_id, global_cooldown, user_cooldown, user, now) > 0:
                return False
            self._stamp_locked(command_id, global_cooldown, user_cooldown, user, now)
            return True

    def record(
        self,
        command_id: str,
        global_cooldown: float,
        user_cooldown: float,
        user: str | None = None,
    ) -> None:
        """Refresh the firing time after the command's actions finished."""
        with self._lock:
            self._stamp_locked(command_id, global_cooldown, user_cooldown, user, self._clock())

    def _stamp_locked(
        self,
        command_id: str,
        global_cooldown: float,
        user_cooldown: float,
        user: str | None,
        now: float,
    ) -> None:
        if global_cooldown > 0:
            self._global[command_id] = now
        if user_cooldown > 0 and user:
            self._users.setdefault(command_id, {})[_user_key(user)] = now

    def reset(self, command_id: str | None = None) -> None:
        with self._lock:
            if command_id is None:
                self._global.clear()
                self._users.clear()
            else:
                self._global.pop(command_id, None)
                self._users.pop(command_id, None)


class VariableStore:
    """Global and per-user variables, optionally backed by a JSON file.

    The file layout is ``{"global": {...}, "users": {"name": {...}}}``.
    Values live in memory; :meth:`save` writes the whole store.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self._lock = threading.RLock()
        self._save_lock = threading.Lock()
        self._global: dict[str, Any] = {}
        self._users: dict[str, dict[str, Any]] = {}
        if self.path is not None:
            self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Read the backing file; a missing or malformed file yields an empty store."""
        if self.path is None or not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to load stored variables from %s: %s", self.path, exc)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring variables file %s: root is not an object", self.path)
            return

        users = data.get("users")
        with self._lock:
            self._global = dict(data.get("global") or {})
            self._users = {
                _user_key(name): dict(values or {})
                for name, values in (users.items() if isinstance(users, dict) else [])
            }
        logger.debug(
            "Loaded %s global and %s user variable sets from %s",
            len(self._global),
            len(self._users),
            self.path,
        )

    def save(self) -> None:
        """Write the whole store through a temporary file that replaces the target.

        Saves run one at a time, so concurrent callers never interleave writes.
        """
        if self.path is None:
            return
        with self._save_lock:
            with self._lock:
                payload = {
                    "global": dict(self._global),
                    "users": {k: dict(v) for k, v in self._users.items()},
                }
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False, default=str), encoding="utf-8"
            )
            tmp_path.replace(self.path)

    # ------------------------------------------------------------------
    # Global variables
    # ------------------------------------------------------------------
    def get_global(self, name: str, default: Any = None) -> Any:
        with self._lock:
            value = self._global.get(name)
        return default if value is None else value

    def set_global(self, name: str, value: Any) -> None:
        with self._lock:
            self._global[name] = value

    def delete_global(self, name: str) -> bool:
        with self._lock:
            return self._global.pop(name, None) is not None

    def globals(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._global)

    # ------------------------------------------------------------------
    # User variables
    # ------------------------------------------------------------------
    def get_user(self, user: str, name: str, default: Any = None) -> Any:
        with self._lock:
            value = self._users.get(_user_key(user), {}).get(name)
        return default if value is None else value

    def set_user(self, user: str, name: str, value: Any) -> None:
        with self._lock:
            self._users.setdefault(_user_key(user), {})[name] = value

    def delete_user(self, user: str, name: str) -> bool:
        with self._lock:
            return self._users.get(_user_key(user), {}).pop(name, None) is not None

    def user_variables(self, user: str) -> dict[str, Any]:
        with self._lock:
            return dict(self._users.get(_user_key(user), {}))

    def users(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {name: dict(values) for name, values in self._users.items()}

    def clear(self) -> None:
        with self._lock:
            self._global.clear()
            self._users.clear()


__all__ = ["CooldownTracker", "VariableStore"]
