# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import (
    DEFAULT_ATTEMPT_LIMIT,
    AssetRef,
    CatalogEntry,
    CatalogItem,
    CatalogNotModified,
    CatalogSnapshot,
    ChannelDestination,
    Destination,
    DestinationRequest,
    PurchaseAttempt,
    PurchaseStatus,
    SelfDestination,
    UniqueCatalogItem,
)
from .exceptions import DomainError, InvariantViolation, InvariantViolationError
from .procedures import (
    DownloadAsset,
    GetCatalog,
    GetPaymentForm,
    GetStarsBalance,
    GiftInvoice,
    PaymentForm,
    Procedure,
    ResolveUsername,
    SendPaymentForm,
)

__all__ = [
    "DEFAULT_ATTEMPT_LIMIT",
    "AssetRef",
    "CatalogEntry",
    "CatalogItem",
    "CatalogNotModified",
    "CatalogSnapshot",
    "ChannelDestination",
    "Destination",
    "DestinationRequest",
    "PurchaseAttempt",
    "PurchaseStatus",
    "SelfDestination",
    "UniqueCatalogItem",
    "DomainError",
    "InvariantViolation",
    "InvariantViolationError",
    "DownloadAsset",
    "GetCatalog",
    "GetPaymentForm",
    "GetStarsBalance",
    "GiftInvoice",
    "PaymentForm",
    "Procedure",
    "ResolveUsername",
    "SendPaymentForm",
]
