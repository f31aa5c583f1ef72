# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Inbound bot updates: recipient registration and "Buy" button presses."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Collection
from typing import Any

from giftsniper.application import PurchaseOrchestrator
from giftsniper.application.interfaces import NotificationSink
from giftsniper.domain import DestinationRequest
from giftsniper.infrastructure.telegram import BotApi
from giftsniper.shared.errors import DuplicateRecipientError, NotificationError
from giftsniper.shared.logging import clear_correlation_id, logger, set_correlation_id
from giftsniper.shared.utils import spawn_detached

ADDED_REPLY = "Added to trusted chats"
REJECTED_REPLY = "User not in admins list"
RETRY_DELAY = 5.0


class BotUpdateListener:
    def __init__(
        self,
        *,
        bot: BotApi,
        notifier: NotificationSink,
        orchestrator: PurchaseOrchestrator,
        admin_usernames: Collection[str],
        attempt_limit: int | None = None,
        destination: DestinationRequest | None = None,
        spawn: Callable[..., Any] = spawn_detached,
    ) -> None:
        self._bot = bot
        self._notifier = notifier
        self._orchestrator = orchestrator
        self._admins = {name.lstrip("@").lower() for name in admin_usernames}
        self._attempt_limit = attempt_limit
        self._destination = destination or DestinationRequest()
        self._spawn = spawn
        self._offset: int | None = None

    @property
    def offset(self) -> int | None:
        return self._offset

    async def run(self) -> None:
        logger.info(f"bot:listening admins={len(self._admins)}")
        while True:
            try:
                await self.poll_once()
            except NotificationError as exc:
                logger.warning(f"bot:poll_fail error={exc}")
                await asyncio.sleep(RETRY_DELAY)

    async def poll_once(self) -> int:
        updates = await self._bot.get_updates(self._offset)
        if not updates:
            return 0
        self._offset = max(int(update["update_id"]) for update in updates) + 1
        results = await asyncio.gather(
            *(self.handle(update) for update in updates), return_exceptions=True
        )
        for update, result in zip(updates, results, strict=True):
            if isinstance(result, BaseException):
                logger.opt(exception=result).error(
                    f"bot:update_fail update_id={update.get('update_id')}"
                )
        return len(updates)

    async def handle(self, update: dict[str, Any]) -> None:
        set_correlation_id(f"update-{update.get('update_id')}")
        try:
            if "message" in update:
                await self._on_message(update["message"])
            elif "callback_query" in update:
                await self._on_callback(update["callback_query"])
            else:
                logger.debug(f"bot:update_skipped keys={sorted(update)}")
        finally:
            clear_correlation_id()

    def is_admin(self, user: dict[str, Any] | None) -> bool:
        username = (user or {}).get("username")
        return bool(username) and username.lower() in self._admins

    async def _on_message(self, message: dict[str, Any]) -> None:
        chat_id = int(message["chat"]["id"])
        sender = message.get("from")
        if not self.is_admin(sender):
            logger.debug(f"bot:rejected chat={chat_id} user={(sender or {}).get('id')}")
            await self._bot.send_message(chat_id, REJECTED_REPLY)
            return
        try:
            await self._notifier.register_recipient(chat_id)
        except DuplicateRecipientError:
            logger.debug(f"bot:recipient_exists chat={chat_id}")
        await self._bot.send_message(chat_id, ADDED_REPLY)

    async def _on_callback(self, query: dict[str, Any]) -> None:
        query_id = str(query["id"])
        sender = query.get("from")
        data = query.get("data")
        if data is None:
            logger.debug(f"bot:callback_without_data id={query_id}")
            return
        if not self.is_admin(sender):
            logger.warning(f"bot:callback_rejected id={query_id} user={(sender or {}).get('id')}")
            await self._bot.answer_callback_query(query_id, REJECTED_REPLY)
            return
        try:
            item_id = int(data)
        except ValueError:
            logger.error(f"bot:callback_bad_data id={query_id} data={data!r}")
            return

        await self._bot.answer_callback_query(query_id)
        logger.info(f"bot:buy_pressed gift_id={item_id} user={sender.get('username')}")
        self._spawn(
            self._orchestrator.buy([item_id], None, self._attempt_limit, self._destination),
            name=f"button-buy[{item_id}]",
        )
