# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from giftsniper.domain import (
    DEFAULT_ATTEMPT_LIMIT,
    Destination,
    DestinationRequest,
    GetPaymentForm,
    GiftInvoice,
    InvariantViolation,
    PurchaseAttempt,
    PurchaseStatus,
    SelfDestination,
    SendPaymentForm,
)
from giftsniper.shared.errors import TransportError
from giftsniper.shared.logging import logger
from giftsniper.shared.observability import PURCHASE_ATTEMPTS

from ..interfaces import AccountSession, NotificationSink, PeerRepository
from .destination import DestinationResolver
from .prices import PriceResolver


@dataclass(slots=True)
class PurchaseRun:
    """What one account did during a purchase round."""

    phone_number: str
    balance_start: int
    balance_end: int = 0
    attempts: list[PurchaseAttempt] = field(default_factory=list)

    @property
    def spent(self) -> int:
        return self.balance_start - self.balance_end

    def succeeded(self) -> list[PurchaseAttempt]:
        return [a for a in self.attempts if a.status.charged]


class PurchaseEngine:
    """Sequential, balance-bounded purchase loop for a single account."""

    def __init__(self, session: AccountSession, notifier: NotificationSink):
        self._session = session
        self._notifier = notifier

    async def run(
        self,
        items: Sequence[tuple[int, int]],
        attempt_limit: int | None = None,
        recipient: Destination | None = None,
    ) -> PurchaseRun:
        """Buy ``items`` (``(gift_id, price)`` in priority order) until limits hit.

        Every attempt is reported through the notifier. Only a failing balance
        fetch or a failing report aborts the loop.
        """

        limit = DEFAULT_ATTEMPT_LIMIT if attempt_limit is None else attempt_limit
        recipient = recipient or SelfDestination()
        phone = self._session.phone_number
        balance = await self._session.fetch_balance()
        run = PurchaseRun(phone_number=phone, balance_start=balance, balance_end=balance)
        logger.info(
            f"purchase:start phone={phone} balance={balance} items={len(items)} limit={limit}"
        )

        # TODO: check a cancellation token here so an operator can halt a spending round
        for item_id, price in items:
            invoice = GiftInvoice(item_id=item_id, recipient=recipient)
            for attempt in range(1, limit + 1):
                if balance < price:
                    logger.debug(
                        f"purchase:insufficient phone={phone} item_id={item_id} "
                        f"balance={balance} need={price}"
                    )
                    break
                status, error = await self._attempt(invoice)
                if status.charged:
                    balance -= price
                record = PurchaseAttempt(
                    phone_number=phone,
                    item_id=item_id,
                    attempt=attempt,
                    status=status,
                    balance=balance,
                    error=error,
                )
                run.attempts.append(record)
                run.balance_end = balance
                PURCHASE_ATTEMPTS.labels(status=status.value).inc()
                await self._notifier.notify_purchase_status(
                    phone, attempt, balance, item_id, status, error
                )

        logger.info(
            f"purchase:done phone={phone} spent={run.spent} end={run.balance_end} "
            f"attempts={len(run.attempts)} ok={len(run.succeeded())}"
        )
        return run

    async def _attempt(self, invoice: GiftInvoice) -> tuple[PurchaseStatus, str | None]:
        phone = self._session.phone_number
        try:
            form = await self._session.invoke(GetPaymentForm(invoice=invoice))
        except TransportError as exc:
            logger.error(
                f"purchase:form_fail phone={phone} item_id={invoice.item_id} reason={exc.detail}"
            )
            return PurchaseStatus.FORM_ERROR, exc.detail
        try:
            await self._session.invoke(SendPaymentForm(form_id=form.form_id, invoice=invoice))
        except TransportError as exc:
            logger.error(
                f"purchase:confirm_fail phone={phone} item_id={invoice.item_id} "
                f"form_id={form.form_id} reason={exc.detail}"
            )
            return PurchaseStatus.CONFIRMATION_ERROR, exc.detail
        logger.info(f"purchase:ok phone={phone} item_id={invoice.item_id}")
        return PurchaseStatus.SUCCESS, None


class PurchaseOrchestrator:
    """Runs one purchase engine per account concurrently and joins them all."""

    def __init__(
        self,
        accounts: Sequence[AccountSession],
        notifier: NotificationSink,
        *,
        peers: PeerRepository | None = None,
        gift_to_destination: bool = False,
    ) -> None:
        self._accounts = list(accounts)
        self._notifier = notifier
        self._gift_to_destination = gift_to_destination
        self._destinations = (
            DestinationResolver(self._accounts[0], peers) if self._accounts else None
        )

    async def buy(
        self,
        item_ids: Sequence[int],
        known_prices: Mapping[int, int] | None = None,
        attempt_limit: int | None = None,
        destination: DestinationRequest | None = None,
    ) -> list[PurchaseRun]:
        """Buy ``item_ids`` (priority order) with every account.

        The first account doubles as the price oracle. If an account fails
        fatally the others still run to completion before the first error
        is re-raised.
        """

        if not self._accounts or self._destinations is None:
            raise InvariantViolation("expected at least one account", field="accounts")
        if not item_ids:
            return []

        resolved = await self._destinations.resolve(destination or DestinationRequest())
        recipient = resolved if self._gift_to_destination else SelfDestination()
        prices = await PriceResolver(self._accounts[0]).resolve(item_ids, known_prices)
        items = list(zip(item_ids, prices, strict=True))
        logger.info(
            f"orchestrator:start accounts={len(self._accounts)} items={items} "
            f"destination={resolved.describe()} recipient={recipient.describe()}"
        )

        results = await asyncio.gather(
            *(
                PurchaseEngine(account, self._notifier).run(items, attempt_limit, recipient)
                for account in self._accounts
            ),
            return_exceptions=True,
        )

        runs: list[PurchaseRun] = []
        first_error: BaseException | None = None
        for account, result in zip(self._accounts, results, strict=True):
            if isinstance(result, BaseException):
                logger.opt(exception=result).error(
                    f"orchestrator:account_fail phone={account.phone_number}"
                )
                if first_error is None:
                    first_error = result
                continue
            runs.append(result)
        if first_error is not None:
            raise first_error
        return runs
