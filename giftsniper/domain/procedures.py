# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Remote procedures understood by an account session.

Each request is a plain value; the transport adapter maps it onto the
concrete MTProto call and returns the documented response type.
"""

from __future__ import annotations

from dataclasses import dataclass

from .entities import AssetRef, Destination, SelfDestination


@dataclass(slots=True, frozen=True)
class GiftInvoice:
    item_id: int
    recipient: Destination = SelfDestination()
    hide_name: bool = False
    include_upgrade: bool = False
    message: str | None = None


@dataclass(slots=True, frozen=True)
class PaymentForm:
    form_id: int


@dataclass(slots=True, frozen=True)
class GetCatalog:
    """-> CatalogSnapshot | CatalogNotModified"""

    version: int = 0


@dataclass(slots=True, frozen=True)
class GetStarsBalance:
    """-> int"""


@dataclass(slots=True, frozen=True)
class GetPaymentForm:
    """-> PaymentForm"""

    invoice: GiftInvoice


@dataclass(slots=True, frozen=True)
class SendPaymentForm:
    """-> None"""

    form_id: int
    invoice: GiftInvoice


@dataclass(slots=True, frozen=True)
class ResolveUsername:
    """-> ChannelDestination"""

    username: str


@dataclass(slots=True, frozen=True)
class DownloadAsset:
    """-> bytes"""

    asset: AssetRef


Procedure = (
    GetCatalog
    | GetStarsBalance
    | GetPaymentForm
    | SendPaymentForm
    | ResolveUsername
    | DownloadAsset
)
