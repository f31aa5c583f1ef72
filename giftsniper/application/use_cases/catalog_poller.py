# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Coroutine, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from giftsniper.domain import (
    DEFAULT_ATTEMPT_LIMIT,
    CatalogItem,
    CatalogNotModified,
    CatalogSnapshot,
    DestinationRequest,
    GetCatalog,
)
from giftsniper.shared.errors import TransportError
from giftsniper.shared.logging import clear_correlation_id, logger, set_correlation_id
from giftsniper.shared.observability import POLL_TICKS, SEEN_ITEMS
from giftsniper.shared.utils import spawn_detached

from ..interfaces import AccountSession, NotificationSink
from .purchase import PurchaseOrchestrator

Spawner = Callable[..., Any]


@dataclass(slots=True)
class PollerSettings:
    max_eligible_supply: int
    include_non_bounded_items: bool = False
    purchase_enabled: bool = False
    attempt_limit: int | None = DEFAULT_ATTEMPT_LIMIT
    interval: float = 2.0
    destination: DestinationRequest = field(default_factory=DestinationRequest)


class TickOutcome(str, Enum):
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"


@dataclass(slots=True)
class TickResult:
    outcome: TickOutcome
    version: int
    notified: list[CatalogItem] = field(default_factory=list)
    purchase_set: list[CatalogItem] = field(default_factory=list)


def select_new_items(
    snapshot: CatalogSnapshot, seen: Iterable[int], *, include_non_bounded: bool = False
) -> list[CatalogItem]:
    """Plain, purchasable, not yet seen gifts in catalog order."""

    seen_ids = set(seen)
    return [
        item
        for item in snapshot.plain_items()
        if item.is_eligible(include_non_bounded=include_non_bounded)
        and item.item_id not in seen_ids
    ]


def prioritize_for_purchase(items: Sequence[CatalogItem], max_supply: int) -> list[CatalogItem]:
    """Bounded gifts within ``max_supply``, scarcest first."""

    candidates = [item for item in items if item.fits_supply(max_supply)]
    return sorted(candidates, key=lambda item: int(item.total_supply or 0))


class CatalogPoller:
    """Polls the gift catalog and feeds notifications and purchase rounds.

    Owns the last seen catalog version and the seen gift ids; nothing else
    touches them.
    """

    def __init__(
        self,
        *,
        session: AccountSession,
        orchestrator: PurchaseOrchestrator,
        notifier: NotificationSink,
        settings: PollerSettings,
        initial_version: int = 0,
        spawn: Spawner = spawn_detached,
    ) -> None:
        self._session = session
        self._orchestrator = orchestrator
        self._notifier = notifier
        self._settings = settings
        self._version = initial_version
        self._seen: set[int] = set()
        self._spawn = spawn

    @property
    def version(self) -> int:
        return self._version

    @property
    def seen(self) -> frozenset[int]:
        return frozenset(self._seen)

    async def run(self) -> None:
        logger.info(
            f"poller:start version={self._version} interval={self._settings.interval} "
            f"buy={self._settings.purchase_enabled}"
        )
        while True:
            set_correlation_id(f"tick-{uuid.uuid4().hex[:8]}")
            try:
                await self.tick()
            except Exception:
                logger.exception("poller:tick crashed")
            finally:
                clear_correlation_id()
            await asyncio.sleep(self._settings.interval)

    async def tick(self) -> TickResult:
        try:
            result = await self._poll_once()
        finally:
            await self._sync_session()
        POLL_TICKS.labels(outcome=result.outcome.value).inc()
        return result

    async def _poll_once(self) -> TickResult:
        try:
            response = await self._session.invoke(GetCatalog(version=self._version))
        except TransportError as exc:
            logger.error(f"poller:fetch_fail version={self._version} reason={exc.detail}")
            return TickResult(TickOutcome.FAILED, self._version)

        if isinstance(response, CatalogNotModified):
            logger.debug(f"poller:unchanged version={self._version}")
            return TickResult(TickOutcome.UNCHANGED, self._version)

        self._version = response.version
        fresh = select_new_items(
            response, self._seen, include_non_bounded=self._settings.include_non_bounded_items
        )
        logger.info(
            f"poller:changed version={self._version} entries={len(response.entries)} "
            f"new={[item.item_id for item in fresh]}"
        )
        if fresh:
            self._dispatch_notifications(fresh)

        purchase_set = prioritize_for_purchase(fresh, self._settings.max_eligible_supply)
        # marked before buying so a failed round is never retried automatically
        self._seen.update(item.item_id for item in purchase_set)
        SEEN_ITEMS.set(len(self._seen))

        if purchase_set and self._settings.purchase_enabled:
            await self._buy(purchase_set)
        elif purchase_set:
            logger.info(
                f"poller:observe_only skipped={[item.item_id for item in purchase_set]}"
            )
        return TickResult(TickOutcome.CHANGED, self._version, fresh, purchase_set)

    def _dispatch_notifications(self, items: list[CatalogItem]) -> None:
        batch = tuple(items)
        ids = ",".join(str(item.item_id) for item in batch)
        coro: Coroutine[Any, Any, None] = self._notifier.notify_new_items(self._session, batch)
        self._spawn(coro, name=f"notify-new-gifts[{ids}]")

    async def _buy(self, purchase_set: list[CatalogItem]) -> None:
        item_ids = [item.item_id for item in purchase_set]
        prices = {item.item_id: item.price for item in purchase_set}
        try:
            await self._orchestrator.buy(
                item_ids,
                prices,
                self._settings.attempt_limit,
                self._settings.destination,
            )
        except Exception:
            logger.exception(f"poller:buy_fail items={item_ids}")

    async def _sync_session(self) -> None:
        try:
            await self._session.sync_session()
        except Exception:
            logger.exception(f"poller:sync_fail phone={self._session.phone_number}")
