# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from giftsniper.domain import CatalogItem, ChannelDestination, Procedure, PurchaseStatus


class RemoteInvoker(Protocol):
    async def invoke(self, procedure: Procedure) -> Any: ...

    async def invoke_in_dc(self, procedure: Procedure, dc_id: int) -> Any: ...


class AccountSession(RemoteInvoker, Protocol):
    @property
    def phone_number(self) -> str: ...

    async def fetch_balance(self) -> int: ...

    async def sync_session(self) -> None: ...


class NotificationSink(Protocol):
    async def notify_new_items(
        self, session: RemoteInvoker, items: Sequence[CatalogItem]
    ) -> None: ...

    async def notify_purchase_status(
        self,
        phone_number: str,
        attempt: int,
        balance: int,
        item_id: int,
        status: PurchaseStatus,
        error: str | None = None,
    ) -> None: ...

    async def register_recipient(self, chat_id: int) -> None: ...


class SessionRepository(Protocol):
    def get(self, phone_number: str) -> bytes | None: ...

    def save(self, phone_number: str, blob: bytes) -> None: ...


class RecipientRepository(Protocol):
    def add(self, chat_id: int) -> None: ...

    def list_chat_ids(self) -> list[int]: ...


class PeerRepository(Protocol):
    def get(self, username: str) -> ChannelDestination | None: ...

    def save(self, username: str, channel: ChannelDestination) -> None: ...
