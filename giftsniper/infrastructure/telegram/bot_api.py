# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Minimal Telegram Bot API client over httpx."""

from __future__ import annotations

import json
from typing import Any

import httpx

from giftsniper.infrastructure.resilience import CircuitBreaker, CircuitOpenError, resilient_call
from giftsniper.shared.config import ResilienceConfig
from giftsniper.shared.errors import NotificationError
from giftsniper.shared.logging import logger

API_BASE = "https://api.telegram.org"
LONG_POLL_TIMEOUT = 30
# sends are only retried when the request never reached Telegram
SEND_RETRY_ON: tuple[type[BaseException], ...] = (httpx.ConnectError, httpx.ConnectTimeout)


def inline_button_markup(text: str, callback_data: str) -> dict[str, Any]:
    return {"inline_keyboard": [[{"text": text, "callback_data": callback_data}]]}


class BotApi:
    def __init__(
        self,
        token: str,
        *,
        http: httpx.AsyncClient | None = None,
        policy: ResilienceConfig | None = None,
        base_url: str = API_BASE,
    ) -> None:
        self._base = f"{base_url}/bot{token}"
        self._http = http or httpx.AsyncClient(timeout=LONG_POLL_TIMEOUT + 10)
        self._owns_http = http is None
        self._policy = policy or ResilienceConfig()  # type: ignore[call-arg]
        self._send_breaker = CircuitBreaker.from_config(self._policy)
        self._poll_breaker = CircuitBreaker.from_config(self._policy)

    async def call(
        self,
        method: str,
        *,
        payload: dict[str, Any] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
        timeout: float | None = None,
        breaker: CircuitBreaker | None = None,
        retry_on: tuple[type[BaseException], ...] = SEND_RETRY_ON,
    ) -> Any:
        url = f"{self._base}/{method}"
        if files:
            request = {"data": _form_fields(payload or {}), "files": files}
        else:
            request = {"json": payload or {}}
        try:
            response = await resilient_call(
                self._http.post,
                url,
                policy=self._policy,
                breaker=breaker or self._send_breaker,
                timeout=timeout,
                retry_on=retry_on,
                **request,
            )
        except (httpx.HTTPError, TimeoutError, CircuitOpenError) as exc:
            raise NotificationError(method, f"{type(exc).__name__}: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code != 200 or not body.get("ok"):
            description = body.get("description") or response.text[:200]
            raise NotificationError(method, f"code={response.status_code} {description}")
        logger.debug(f"bot:call ok method={method}")
        return body.get("result")

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: str | None = None,
        reply_markup: dict[str, Any] | None = None,
    ) -> Any:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self.call("sendMessage", payload=payload)

    async def send_photo(
        self,
        chat_id: int,
        photo: bytes,
        *,
        caption: str | None = None,
        parse_mode: str | None = None,
        reply_markup: dict[str, Any] | None = None,
        filename: str = "gift.webp",
        mime_type: str = "image/webp",
    ) -> Any:
        payload: dict[str, Any] = {"chat_id": chat_id}
        if caption:
            payload["caption"] = caption
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self.call(
            "sendPhoto", payload=payload, files={"photo": (filename, photo, mime_type)}
        )

    async def answer_callback_query(self, callback_query_id: str, text: str | None = None) -> Any:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return await self.call(
            "answerCallbackQuery", payload=payload, retry_on=(httpx.TransportError,)
        )

    async def get_updates(
        self, offset: int | None = None, timeout: int = LONG_POLL_TIMEOUT
    ) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {
            "timeout": timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        result = await self.call(
            "getUpdates",
            payload=payload,
            timeout=timeout + 10,
            breaker=self._poll_breaker,
            retry_on=(httpx.TransportError,),
        )
        return list(result or [])

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


def _form_fields(payload: dict[str, Any]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for key, value in payload.items():
        if isinstance(value, dict | list):
            fields[key] = json.dumps(value)
        else:
            fields[key] = str(value)
    return fields


__all__ = ["API_BASE", "BotApi", "inline_button_markup"]
