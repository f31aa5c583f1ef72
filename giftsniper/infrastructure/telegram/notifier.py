# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from giftsniper.application.interfaces import RecipientRepository, RemoteInvoker
from giftsniper.domain import CatalogItem, DownloadAsset, PurchaseStatus
from giftsniper.shared.errors import NotificationError, TransportError
from giftsniper.shared.logging import logger
from giftsniper.shared.observability import NOTIFICATIONS

from .bot_api import BotApi, inline_button_markup

MARKDOWN_V2 = "MarkdownV2"
_MARKDOWN_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")

_FAILURE_TITLES = {
    PurchaseStatus.FORM_ERROR: "PaymentForm",
    PurchaseStatus.CONFIRMATION_ERROR: "SendStarsForm",
}


def escape_markdown(text: object) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", str(text))


def _supply(value: int | None) -> str:
    return "unlimited" if value is None else str(value)


def render_item_caption(item: CatalogItem) -> str:
    return (
        f"ID: `{item.item_id}`\n\n"
        f"Limited: *{'yes' if item.limited else 'no'}*\n\n"
        f"Stars: *{item.price}* ⭐️\n\n"
        f"Supply: *{escape_markdown(_supply(item.total_supply))}*\n"
        f"Remains: *{escape_markdown(_supply(item.remaining_supply))}*"
    )


def render_purchase_status(
    phone_number: str,
    attempt: int,
    balance: int,
    item_id: int,
    status: PurchaseStatus,
    error: str | None = None,
) -> tuple[str, str | None]:
    """Return ``(text, parse_mode)`` for one purchase attempt report."""

    if status is PurchaseStatus.SUCCESS:
        text = (
            "✅ Gift bought\n\n"
            f"Count: *{attempt}*\n"
            f"Phone Number: *{escape_markdown(phone_number)}*\n"
            f"Balance: {escape_markdown(balance)} ⭐️\n"
            f"ID: `{item_id}`"
        )
        return text, MARKDOWN_V2
    text = (
        f"❌ Error({_FAILURE_TITLES[status]}): {error or 'unknown error'}\n\n"
        f"Count: {attempt}\n"
        f"Phone Number: {phone_number}\n"
        f"Balance: {balance} ⭐️\n"
        f"ID: {item_id}"
    )
    return text, None


class TelegramBotNotifier:
    """Fans alerts and purchase reports out to every registered chat."""

    def __init__(self, bot: BotApi, recipients: RecipientRepository):
        self._bot = bot
        self._recipients = recipients

    async def register_recipient(self, chat_id: int) -> None:
        await asyncio.to_thread(self._recipients.add, chat_id)
        logger.info(f"notify:recipient_added chat={chat_id}")

    async def notify_new_items(
        self, session: RemoteInvoker, items: Sequence[CatalogItem]
    ) -> None:
        chat_ids = await asyncio.to_thread(self._recipients.list_chat_ids)
        if not chat_ids:
            logger.warning(f"notify:no_recipients items={[item.item_id for item in items]}")
            return
        results = await asyncio.gather(
            *(self._announce(session, item, chat_ids) for item in items),
            return_exceptions=True,
        )
        for item, result in zip(items, results, strict=True):
            if isinstance(result, BaseException):
                logger.opt(exception=result).error(f"notify:item_fail gift_id={item.item_id}")

    async def notify_purchase_status(
        self,
        phone_number: str,
        attempt: int,
        balance: int,
        item_id: int,
        status: PurchaseStatus,
        error: str | None = None,
    ) -> None:
        chat_ids = await asyncio.to_thread(self._recipients.list_chat_ids)
        text, parse_mode = render_purchase_status(
            phone_number, attempt, balance, item_id, status, error
        )

        def send(chat_id: int) -> Awaitable[Any]:
            return self._bot.send_message(chat_id, text, parse_mode=parse_mode)

        await self._broadcast("status", chat_ids, send, "sendMessage")

    async def _announce(
        self, session: RemoteInvoker, item: CatalogItem, chat_ids: Sequence[int]
    ) -> None:
        caption = render_item_caption(item)
        markup = inline_button_markup("Buy", str(item.item_id))
        image = await self._download(session, item)

        if image is None:

            def send(chat_id: int) -> Awaitable[Any]:
                return self._bot.send_message(
                    chat_id, caption, parse_mode=MARKDOWN_V2, reply_markup=markup
                )

            await self._broadcast("new_item", chat_ids, send, "sendMessage")
            return

        def send_photo(chat_id: int) -> Awaitable[Any]:
            return self._bot.send_photo(
                chat_id, image, caption=caption, parse_mode=MARKDOWN_V2, reply_markup=markup
            )

        await self._broadcast("new_item", chat_ids, send_photo, "sendPhoto")

    async def _download(self, session: RemoteInvoker, item: CatalogItem) -> bytes | None:
        if item.asset is None:
            return None
        try:
            return await session.invoke_in_dc(DownloadAsset(asset=item.asset), item.asset.dc_id)
        except TransportError as exc:
            logger.warning(f"notify:asset_fail gift_id={item.item_id} reason={exc.detail}")
            return None

    async def _broadcast(
        self,
        kind: str,
        chat_ids: Sequence[int],
        send: Callable[[int], Awaitable[Any]],
        method: str,
    ) -> None:
        if not chat_ids:
            return
        results = await asyncio.gather(
            *(send(chat_id) for chat_id in chat_ids), return_exceptions=True
        )
        failures = 0
        last_error: BaseException | None = None
        for chat_id, result in zip(chat_ids, results, strict=True):
            if isinstance(result, BaseException):
                failures += 1
                last_error = result
                NOTIFICATIONS.labels(kind=kind, result="failed").inc()
                logger.warning(f"notify:send_fail kind={kind} chat={chat_id} error={result}")
            else:
                NOTIFICATIONS.labels(kind=kind, result="sent").inc()
        if failures == len(chat_ids):
            raise NotificationError(method, f"all {failures} recipients failed: {last_error}")


__all__ = [
    "TelegramBotNotifier",
    "escape_markdown",
    "render_item_caption",
    "render_purchase_status",
]
