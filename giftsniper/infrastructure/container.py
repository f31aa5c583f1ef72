# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Sequence
from functools import cached_property

from giftsniper.application import PollerSettings, PurchaseOrchestrator
from giftsniper.application.interfaces import AccountSession
from giftsniper.infrastructure.db import Database
from giftsniper.infrastructure.encryption import SessionCipher
from giftsniper.infrastructure.repositories import (
    SqlAlchemyPeerRepository,
    SqlAlchemyRecipientRepository,
    SqlAlchemySessionRepository,
)
from giftsniper.infrastructure.telegram import (
    BotApi,
    PyrogramAccountSession,
    TelegramBotNotifier,
    connect_session,
)
from giftsniper.shared.config import AppConfig
from giftsniper.shared.logging import logger


class Container:
    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._accounts: list[PyrogramAccountSession] = []

    @cached_property
    def database(self) -> Database:
        database = Database(self.config.database_url)
        database.create_schema()
        return database

    @cached_property
    def session_cipher(self) -> SessionCipher | None:
        key = self.config.session_encryption_key
        return SessionCipher(key) if key else None

    @cached_property
    def session_repository(self) -> SqlAlchemySessionRepository:
        return SqlAlchemySessionRepository(self.database.session_factory, self.session_cipher)

    @cached_property
    def recipient_repository(self) -> SqlAlchemyRecipientRepository:
        return SqlAlchemyRecipientRepository(self.database.session_factory)

    @cached_property
    def peer_repository(self) -> SqlAlchemyPeerRepository:
        return SqlAlchemyPeerRepository(self.database.session_factory)

    @cached_property
    def bot_api(self) -> BotApi:
        return BotApi(self.config.bot_token, policy=self.config.resilience)

    @cached_property
    def notifier(self) -> TelegramBotNotifier:
        return TelegramBotNotifier(self.bot_api, self.recipient_repository)

    async def open_accounts(self) -> list[PyrogramAccountSession]:
        """Connect every configured phone number, one after another."""

        if self._accounts:
            return self._accounts
        for phone_number in self.config.phone_numbers:
            session = await connect_session(
                phone_number,
                self.config.api_id,
                self.config.api_hash,
                self.session_repository,
            )
            self._accounts.append(session)
        logger.info(f"container:accounts_ready count={len(self._accounts)}")
        return self._accounts

    def orchestrator(self, accounts: Sequence[AccountSession]) -> PurchaseOrchestrator:
        return PurchaseOrchestrator(
            accounts,
            self.notifier,
            peers=self.peer_repository,
            gift_to_destination=self.config.gift_to_destination,
        )

    def poller_settings(
        self,
        *,
        include_non_bounded_items: bool | None = None,
        purchase_enabled: bool | None = None,
        attempt_limit: int | None = None,
    ) -> PollerSettings:
        config = self.config
        return PollerSettings(
            max_eligible_supply=config.max_eligible_supply,
            include_non_bounded_items=(
                config.include_non_bounded_items
                if include_non_bounded_items is None
                else include_non_bounded_items
            ),
            purchase_enabled=(
                config.purchase_enabled if purchase_enabled is None else purchase_enabled
            ),
            attempt_limit=attempt_limit or config.per_item_attempt_limit,
            interval=config.poll_interval,
            destination=config.destination(),
        )

    async def aclose(self) -> None:
        for session in self._accounts:
            try:
                await session.sync_session()
            except Exception:
                logger.exception(f"container:final_sync_fail phone={session.phone_number}")
            await session.close()
        self._accounts.clear()
        if "bot_api" in self.__dict__:
            await self.bot_api.aclose()
        if "database" in self.__dict__:
            self.database.dispose()
