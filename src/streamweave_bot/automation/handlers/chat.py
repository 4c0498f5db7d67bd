"""Chat, moderation, channel metadata and user lookup steps."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...core.logger import get_logger
from ..capabilities import resolve
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult, to_bool, to_int

logger = get_logger("automation.handlers.chat")


class ChatHandlers(HandlerGroup):
    category = "chat"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.SEND_MESSAGE: self.send_message,
            SubActionType.YOUTUBE_SEND_MESSAGE: self.send_youtube_message,
        }

    async def send_message(self, step: SubAction, context: ExecutionContext) -> StepResult:
        text = self.text(step, context, "message", "text")
        if not text:
            logger.debug("Step %s has no text to send; skipping", step.id)
            return StepResult(skipped=True)
        chat = self.capabilities.chat
        if chat is None:
            logger.info("[chat] %s", text)
            return self.unavailable("chat", step)
        await resolve(chat.send_message(text, to_bool(step.get("use_bot"), True)))
        return StepResult()

    async def send_youtube_message(self, step: SubAction, context: ExecutionContext) -> StepResult:
        text = self.text(step, context, "message", "text")
        if not text:
            logger.debug("Step %s has no text to send; skipping", step.id)
            return StepResult(skipped=True)
        chat = self.capabilities.youtube_chat
        if chat is None:
            return self.unavailable("youtube chat", step)
        await resolve(chat.send_message(text, to_bool(step.get("use_bot"), True)))
        return StepResult()


class ModerationHandlers(HandlerGroup):
    category = "moderation"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.TWITCH_DELETE_MESSAGE: self.delete_message,
            SubActionType.TWITCH_CLEAR_CHAT: self.clear_chat,
            SubActionType.TWITCH_TIMEOUT_USER: self.timeout_user,
            SubActionType.TWITCH_BAN_USER: self.ban_user,
            SubActionType.TWITCH_UNBAN_USER: self.unban_user,
            SubActionType.TWITCH_SLOW_MODE: self.slow_mode,
        }

    def _target(self, step: SubAction, context: ExecutionContext, fallback: str = "") -> str:
        return self.text(step, context, "user_name", "user_login", default=fallback).lstrip("@")

    async def delete_message(self, step: SubAction, context: ExecutionContext) -> StepResult:
        message_id = self.text(step, context, "message_id", default="%messageId%")
        if not message_id or message_id == "%messageId%":
            return StepResult.failed("messageId is required")
        moderation = self.capabilities.moderation
        if moderation is None:
            return self.unavailable("moderation", step)
        await resolve(moderation.delete_message(message_id))
        return StepResult()

    async def clear_chat(self, step: SubAction, context: ExecutionContext) -> StepResult:
        moderation = self.capabilities.moderation
        if moderation is None:
            return self.unavailable("moderation", step)
        await resolve(moderation.clear_chat())
        return StepResult()

    async def timeout_user(self, step: SubAction, context: ExecutionContext) -> StepResult:
        user = self._target(step, context, context.user_name)
        if not user:
            return StepResult.failed("userName is required")
        duration = to_int(self.text(step, context, "duration"), 600)
        reason = self.text(step, context, "reason")
        moderation = self.capabilities.moderation
        if moderation is None:
            return self.unavailable("moderation", step)
        await resolve(moderation.timeout_user(user, duration, reason))
        return StepResult()

    async def ban_user(self, step: SubAction, context: ExecutionContext) -> StepResult:
        user = self._target(step, context)
        if not user:
            return StepResult.failed("userName is required")
        moderation = self.capabilities.moderation
        if moderation is None:
            return self.unavailable("moderation", step)
        await resolve(moderation.ban_user(user, self.text(step, context, "reason")))
        return StepResult()

    async def unban_user(self, step: SubAction, context: ExecutionContext) -> StepResult:
        user = self._target(step, context)
        if not user:
            return StepResult.failed("userName is required")
        moderation = self.capabilities.moderation
        if moderation is None:
            return self.unavailable("moderation", step)
        await resolve(moderation.unban_user(user))
        return StepResult()

    async def slow_mode(self, step: SubAction, context: ExecutionContext) -> StepResult:
        # "state" holds the on/off switch; "enabled" belongs to the step itself
        enabled = to_bool(step.get("state"), True)
        duration = to_int(self.text(step, context, "duration"), 30)
        moderation = self.capabilities.moderation
        if moderation is None:
            return self.unavailable("moderation", step)
        await resolve(moderation.set_slow_mode(enabled, duration))
        return StepResult()


class ChannelHandlers(HandlerGroup):
    category = "channel"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.TWITCH_SET_TITLE: self.set_title,
            SubActionType.TWITCH_SET_GAME: self.set_category,
            SubActionType.TWITCH_CREATE_MARKER: self.create_marker,
            SubActionType.TWITCH_RUN_COMMERCIAL: self.run_commercial,
        }

    async def set_title(self, step: SubAction, context: ExecutionContext) -> StepResult:
        title = self.text(step, context, "title")
        if not title:
            return StepResult.failed("title is required")
        channel = self.capabilities.channel
        if channel is None:
            return self.unavailable("channel", step)
        await resolve(channel.set_title(title))
        return StepResult()

    async def set_category(self, step: SubAction, context: ExecutionContext) -> StepResult:
        category = self.text(step, context, "game", "category")
        if not category:
            return StepResult.failed("game is required")
        channel = self.capabilities.channel
        if channel is None:
            return self.unavailable("channel", step)
        await resolve(channel.set_category(category))
        return StepResult()

    async def create_marker(self, step: SubAction, context: ExecutionContext) -> StepResult:
        channel = self.capabilities.channel
        if channel is None:
            return self.unavailable("channel", step)
        await resolve(channel.create_marker(self.text(step, context, "description")))
        return StepResult()

    async def run_commercial(self, step: SubAction, context: ExecutionContext) -> StepResult:
        channel = self.capabilities.channel
        if channel is None:
            return self.unavailable("channel", step)
        await resolve(channel.run_commercial(to_int(self.text(step, context, "duration"), 30)))
        return StepResult()


def _profile_variables(profile: Mapping[str, Any] | None, requested: str) -> dict[str, Any]:
    data = dict(profile or {})
    created = data.get("created_at") or data.get("createdAt") or ""
    return {
        "targetUser": data.get("display_name") or data.get("login") or requested,
        "accountCreated": created,
        "targetUserId": data.get("id") or "",
        "targetUserName": data.get("login") or requested,
        "targetDisplayName": data.get("display_name") or "",
        "targetUserType": data.get("type") or "",
        "targetBroadcasterType": data.get("broadcaster_type") or "",
        "targetDescription": data.get("description") or "",
        "targetProfileImage": data.get("profile_image_url") or "",
        "targetCreatedAt": created,
    }


class UserLookupHandlers(HandlerGroup):
    category = "users"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.GET_USER_INFO: self.get_user_info,
            SubActionType.GET_USER_INFO_BY_LOGIN: self.get_user_info_by_login,
        }

    def _login(self, step: SubAction, context: ExecutionContext) -> str:
        return self.text(step, context, "user_login", "user_name", default=context.user_name).lstrip("@")

    async def get_user_info(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Look a user up by id when ``userId`` is set, otherwise by login."""
        user_id = self.text(step, context, "user_id")
        if not user_id:
            return await self.get_user_info_by_login(step, context)

        users = self.capabilities.users
        if users is None:
            self.unavailable("user lookup", step)
            return StepResult(variables=_profile_variables(None, ""), skipped=True)
        profile = await resolve(users.get_user_by_id(user_id))
        if profile is None:
            logger.info("User id %s not found", user_id)
        return StepResult(variables=_profile_variables(profile, ""))

    async def get_user_info_by_login(self, step: SubAction, context: ExecutionContext) -> StepResult:
        login = self._login(step, context)
        users = self.capabilities.users
        if users is None:
            self.unavailable("user lookup", step)
            return StepResult(variables=_profile_variables(None, login), skipped=True)
        if not login:
            return StepResult.failed("userLogin is required")
        profile = await resolve(users.get_user_by_login(login))
        if profile is None:
            logger.info("User %s not found", login)
        return StepResult(variables=_profile_variables(profile, login))


__all__ = ["ChannelHandlers", "ChatHandlers", "ModerationHandlers", "UserLookupHandlers"]
