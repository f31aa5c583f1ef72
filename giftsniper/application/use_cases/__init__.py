# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .catalog_poller import (
    CatalogPoller,
    PollerSettings,
    TickOutcome,
    TickResult,
    prioritize_for_purchase,
    select_new_items,
)
from .destination import DestinationResolver
from .prices import PriceResolver
from .purchase import PurchaseEngine, PurchaseOrchestrator, PurchaseRun

__all__ = [
    "CatalogPoller",
    "PollerSettings",
    "TickOutcome",
    "TickResult",
    "prioritize_for_purchase",
    "select_new_items",
    "DestinationResolver",
    "PriceResolver",
    "PurchaseEngine",
    "PurchaseOrchestrator",
    "PurchaseRun",
]
