"""Community message broker steps (channel messages, DMs, roles, channels)."""

from __future__ import annotations

from ..capabilities import resolve
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult


class BrokerHandlers(HandlerGroup):
    category = "broker"

    def handlers(self) -> dict[int, StepHandler]:
        return {
            SubActionType.DISCORD_SEND_MESSAGE: self.send_message,
            SubActionType.DISCORD_SEND_DM: self.send_direct_message,
            SubActionType.DISCORD_ADD_ROLE: self.add_role,
            SubActionType.DISCORD_REMOVE_ROLE: self.remove_role,
            SubActionType.DISCORD_CREATE_CHANNEL: self.create_channel,
        }

    def _required(self, step: SubAction, context: ExecutionContext, *names: str) -> dict[str, str]:
        values = {name: self.text(step, context, name) for name in names}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")
        return values

    async def send_message(self, step: SubAction, context: ExecutionContext) -> StepResult:
        try:
            fields = self._required(step, context, "channel_id", "message")
        except ValueError as exc:
            return StepResult.failed(str(exc))
        broker = self.capabilities.broker
        if broker is None:
            return self.unavailable("message broker", step)
        await resolve(broker.send_message(fields["channel_id"], fields["message"]))
        return StepResult()

    async def send_direct_message(self, step: SubAction, context: ExecutionContext) -> StepResult:
        try:
            fields = self._required(step, context, "user_id", "message")
        except ValueError as exc:
            return StepResult.failed(str(exc))
        broker = self.capabilities.broker
        if broker is None:
            return self.unavailable("message broker", step)
        await resolve(broker.send_direct_message(fields["user_id"], fields["message"]))
        return StepResult()

    async def add_role(self, step: SubAction, context: ExecutionContext) -> StepResult:
        return await self._change_role(step, context, add=True)

    async def remove_role(self, step: SubAction, context: ExecutionContext) -> StepResult:
        return await self._change_role(step, context, add=False)

    async def _change_role(self, step: SubAction, context: ExecutionContext, add: bool) -> StepResult:
        try:
            fields = self._required(step, context, "guild_id", "user_id", "role_id")
        except ValueError as exc:
            return StepResult.failed(str(exc))
        broker = self.capabilities.broker
        if broker is None:
            return self.unavailable("message broker", step)
        operation = broker.add_role if add else broker.remove_role
        await resolve(operation(fields["guild_id"], fields["user_id"], fields["role_id"]))
        return StepResult()

    async def create_channel(self, step: SubAction, context: ExecutionContext) -> StepResult:
        try:
            fields = self._required(step, context, "guild_id", "channel_name")
        except ValueError as exc:
            return StepResult.failed(str(exc))
        broker = self.capabilities.broker
        if broker is None:
            return self.unavailable("message broker", step)
        kind = self.text(step, context, "channel_type", default="text")
        await resolve(broker.create_channel(fields["guild_id"], fields["channel_name"], kind))
        return StepResult()


__all__ = ["BrokerHandlers"]
