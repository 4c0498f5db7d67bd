"""HTTP request step."""

from __future__ import annotations

import json
from typing import Any

import httpx

from ...core.logger import get_logger
from ..context import ExecutionContext
from ..models import SubAction, SubActionType
from .base import HandlerGroup, StepHandler, StepResult, to_bool, to_float

logger = get_logger("automation.handlers.network")

BODYLESS_METHODS = {"GET", "HEAD", "OPTIONS"}


class NetworkHandlers(HandlerGroup):
    category = "network"

    def handlers(self) -> dict[int, StepHandler]:
        return {SubActionType.HTTP_REQUEST: self.http_request}

    async def http_request(self, step: SubAction, context: ExecutionContext) -> StepResult:
        """Send an HTTP request and store the response.

        Any completed response is a success, whatever its status; the status
        is exposed as ``httpStatus`` / ``httpStatusText``. Transport errors
        and timeouts fail the step once the retry policy is exhausted.
        """
        url = self.text(step, context, "url")
        if not url:
            return StepResult.failed("url is required")
        method = str(step.get("method") or "GET").strip().upper()
        try:
            headers = self._headers(step, context)
        except ValueError as exc:
            return StepResult.failed(f"Invalid headers: {exc}")

        body = self.text(step, context, "body")
        content = body if body and method not in BODYLESS_METHODS else None
        timeout = to_float(step.get("timeout"), self.services.http.timeout)

        try:
            response = await self._send(method, url, headers, content, timeout)
        except httpx.HTTPError as exc:
            return StepResult.failed(f"HTTP request failed: {exc}")

        data: Any = response.text
        if to_bool(step.get("parse_as_json"), True):
            try:
                data = response.json()
            except ValueError:
                logger.debug("Response from %s is not JSON; keeping text", url)

        variable = step.get("variable_name") or "httpResponse"
        return StepResult(
            variables={
                variable: data,
                "httpStatus": response.status_code,
                "httpStatusText": response.reason_phrase,
            }
        )

    def _headers(self, step: SubAction, context: ExecutionContext) -> dict[str, str]:
        raw = step.get("headers")
        if not raw:
            return {}
        if isinstance(raw, str):
            parsed = json.loads(context.render(raw))
        else:
            parsed = raw
        if not isinstance(parsed, dict):
            raise ValueError("headers must be an object")
        return {str(key): context.render(value) for key, value in parsed.items()}

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: str | None,
        timeout: float,
    ) -> httpx.Response:
        retry = self.services.http.retry
        attempt = 0
        delay = retry.backoff_seconds
        while True:
            attempt += 1
            try:
                logger.debug("Automation HTTP request %s %s (attempt %s)", method, url, attempt)
                async with httpx.AsyncClient(
                    timeout=timeout,
                    headers={"User-Agent": self.services.http.user_agent},
                ) as client:
                    return await client.request(method, url, headers=headers, content=content)
            except httpx.HTTPError as exc:
                if attempt >= retry.max_attempts:
                    raise
                sleep_for = min(delay, retry.max_backoff_seconds)
                logger.warning(
                    "Automation HTTP request retry (%s/%s) after error: %s",
                    attempt,
                    retry.max_attempts,
                    exc,
                )
                await self.services.sleep(sleep_for)
                delay = max(delay * retry.backoff_multiplier, retry.backoff_seconds)


__all__ = ["NetworkHandlers"]
