"""Broadcast-software scene control steps."""

from __future__ import annotations

from ..capabilities import resolve
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult, to_int

VISIBILITY_STATES = (0, 1, 2)


class SceneHandlers(HandlerGroup):
    category = "scenes"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.OBS_SET_SCENE: self.set_scene,
            SubActionType.OBS_GET_CURRENT_SCENE: self.get_current_scene,
            SubActionType.OBS_TOGGLE_SOURCE: self.set_source_visibility,
            SubActionType.OBS_SET_TEXT: self.set_text,
            SubActionType.OBS_SET_BROWSER_SOURCE: self.set_browser_source,
            SubActionType.OBS_SET_MEDIA_SOURCE: self.set_media_source,
            SubActionType.OBS_START_RECORDING: self.start_recording,
            SubActionType.OBS_STOP_RECORDING: self.stop_recording,
            SubActionType.OBS_START_STREAMING: self.start_streaming,
            SubActionType.OBS_STOP_STREAMING: self.stop_streaming,
        }

    async def set_scene(self, step: SubAction, context: ExecutionContext) -> StepResult:
        scene = self.text(step, context, "scene_name", "scene")
        if not scene:
            return StepResult.failed("sceneName is required")
        scenes = self.capabilities.scenes
        if scenes is None:
            return self.unavailable("scene", step)
        await resolve(scenes.set_scene(scene))
        return StepResult()

    async def get_current_scene(self, step: SubAction, context: ExecutionContext) -> StepResult:
        variable = step.get("variable_name") or "currentScene"
        scenes = self.capabilities.scenes
        if scenes is None:
            self.unavailable("scene", step)
            return StepResult(variables={variable: "", "obsCurrentScene": ""}, skipped=True)
        scene = await resolve(scenes.get_current_scene()) or ""
        return StepResult(variables={variable: scene, "obsCurrentScene": scene})

    async def set_source_visibility(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Show (1), hide (0) or toggle (2) a source; defaults to show."""
        source = self.text(step, context, "source_name", "source")
        if not source:
            return StepResult.failed("sourceName is required")
        state = to_int(step.get("state"), 1)
        if state not in VISIBILITY_STATES:
            return StepResult.failed(f"Invalid visibility state: {state}")
        scenes = self.capabilities.scenes
        if scenes is None:
            return self.unavailable("scene", step)
        scene = self.text(step, context, "scene_name", "scene")
        await resolve(scenes.set_source_visibility(scene, source, state))
        return StepResult()

    async def set_text(self, step: SubAction, context: ExecutionContext) -> StepResult:
        source = self.text(step, context, "source_name", "source")
        if not source:
            return StepResult.failed("sourceName is required")
        scenes = self.capabilities.scenes
        if scenes is None:
            return self.unavailable("scene", step)
        await resolve(scenes.set_text(source, self.text(step, context, "text")))
        return StepResult()

    async def set_browser_source(self, step: SubAction, context: ExecutionContext) -> StepResult:
        source = self.text(step, context, "source_name", "source")
        url = self.text(step, context, "url")
        if not source or not url:
            return StepResult.failed("sourceName and url are required")
        scenes = self.capabilities.scenes
        if scenes is None:
            return self.unavailable("scene", step)
        await resolve(scenes.set_browser_source(source, url))
        return StepResult()

    async def set_media_source(self, step: SubAction, context: ExecutionContext) -> StepResult:
        source = self.text(step, context, "source_name", "source")
        media = self.text(step, context, "media_file", "file")
        if not source or not media:
            return StepResult.failed("sourceName and file are required")
        scenes = self.capabilities.scenes
        if scenes is None:
            return self.unavailable("scene", step)
        await resolve(scenes.set_media_source(source, media))
        return StepResult()

    async def start_recording(self, step: SubAction, context: ExecutionContext) -> StepResult:
        return await self._control(step, "start_recording")

    async def stop_recording(self, step: SubAction, context: ExecutionContext) -> StepResult:
        return await self._control(step, "stop_recording")

    async def start_streaming(self, step: SubAction, context: ExecutionContext) -> StepResult:
        return await self._control(step, "start_streaming")

    async def stop_streaming(self, step: SubAction, context: ExecutionContext) -> StepResult:
        return await self._control(step, "stop_streaming")

    async def _control(self, step: SubAction, operation: str) -> StepResult:
        scenes = self.capabilities.scenes
        if scenes is None:
            return self.unavailable("scene", step)
        await resolve(getattr(scenes, operation)())
        return StepResult()


__all__ = ["SceneHandlers"]
