# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping, Sequence

from giftsniper.domain import CatalogNotModified, GetCatalog
from giftsniper.shared.errors import PriceNotFoundError, UnexpectedNotModifiedError
from giftsniper.shared.logging import logger

from ..interfaces import RemoteInvoker


class PriceResolver:
    """Looks up star prices for gift ids, fetching the full catalog when needed."""

    def __init__(self, invoker: RemoteInvoker):
        self._invoker = invoker

    async def resolve(
        self, item_ids: Sequence[int], known_prices: Mapping[int, int] | None = None
    ) -> list[int]:
        prices = known_prices if known_prices is not None else await self._fetch_prices()
        resolved: list[int] = []
        for item_id in item_ids:
            price = prices.get(item_id)
            if price is None:
                raise PriceNotFoundError(item_id)
            resolved.append(price)
        return resolved

    async def _fetch_prices(self) -> dict[int, int]:
        # version 0 asks for the full catalog unconditionally
        snapshot = await self._invoker.invoke(GetCatalog(version=0))
        if isinstance(snapshot, CatalogNotModified):
            raise UnexpectedNotModifiedError()
        prices = snapshot.price_map()
        logger.debug(f"prices:fetched version={snapshot.version} items={len(prices)}")
        return prices
