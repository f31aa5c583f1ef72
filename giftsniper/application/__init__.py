# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .interfaces import (
    AccountSession,
    NotificationSink,
    PeerRepository,
    RecipientRepository,
    RemoteInvoker,
    SessionRepository,
)
from .use_cases import (
    CatalogPoller,
    PollerSettings,
    PriceResolver,
    PurchaseEngine,
    PurchaseOrchestrator,
    PurchaseRun,
)

__all__ = [
    "AccountSession",
    "NotificationSink",
    "PeerRepository",
    "RecipientRepository",
    "RemoteInvoker",
    "SessionRepository",
    "CatalogPoller",
    "PollerSettings",
    "PriceResolver",
    "PurchaseEngine",
    "PurchaseOrchestrator",
    "PurchaseRun",
]
