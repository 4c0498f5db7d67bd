"""Sound playback step."""

from __future__ import annotations

from ..capabilities import resolve
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult, to_bool, to_float


class MediaHandlers(HandlerGroup):
    category = "media"

    def handlers(self) -> dict[int, StepHandler]:
        return {SubActionType.PLAY_SOUND: self.play_sound}

    async def play_sound(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Play a sound file; volume is given in percent (default 100).

        With ``finishBeforeContinuing`` the step only completes once playback ends.
        """
        path = self.text(step, context, "sound_file", "file")
        if not path:
            return StepResult.failed("soundFile is required")
        sound = self.capabilities.sound
        if sound is None:
            return self.unavailable("sound", step)

        volume = min(max(to_float(step.get("volume"), 100.0), 0.0), 100.0) / 100
        wait = to_bool(step.get("finish_before_continuing"))
        await resolve(sound.play(path, volume, wait))
        return StepResult()


__all__ = ["MediaHandlers"]
