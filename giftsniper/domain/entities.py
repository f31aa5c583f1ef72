# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Domain entities for the star gift catalog and purchase attempts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .exceptions import InvariantViolation

DEFAULT_ATTEMPT_LIMIT = 100


@dataclass(slots=True, frozen=True)
class AssetRef:
    """Location of a downloadable gift sticker thumbnail."""

    dc_id: int
    media_id: int
    access_hash: int
    file_reference: bytes
    thumb_size: str = "s"


@dataclass(slots=True, frozen=True)
class CatalogItem:
    """Plain star gift as listed in the catalog."""

    item_id: int
    price: int
    limited: bool
    total_supply: int | None = None
    remaining_supply: int | None = None
    sold_out: bool = False
    asset: AssetRef | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise InvariantViolation("price must be positive", field="price")
        if self.total_supply is not None and self.total_supply < 0:
            raise InvariantViolation("total supply must be >= 0", field="total_supply")
        if self.remaining_supply is not None and self.remaining_supply < 0:
            raise InvariantViolation("remaining supply must be >= 0", field="remaining_supply")

    def is_eligible(self, *, include_non_bounded: bool = False) -> bool:
        return (include_non_bounded or self.limited) and not self.sold_out

    def fits_supply(self, max_supply: int) -> bool:
        return self.total_supply is not None and self.total_supply <= max_supply


@dataclass(slots=True, frozen=True)
class UniqueCatalogItem:
    """Upgraded one-of-a-kind gift; never priced nor purchased."""

    item_id: int


CatalogEntry = CatalogItem | UniqueCatalogItem


@dataclass(slots=True, frozen=True)
class CatalogSnapshot:
    version: int
    entries: tuple[CatalogEntry, ...] = ()

    def plain_items(self) -> list[CatalogItem]:
        return [entry for entry in self.entries if isinstance(entry, CatalogItem)]

    def price_map(self) -> dict[int, int]:
        return {item.item_id: item.price for item in self.plain_items()}


@dataclass(slots=True, frozen=True)
class CatalogNotModified:
    """Returned when the requested version is still current."""


class PurchaseStatus(str, Enum):
    FORM_ERROR = "FormError"
    CONFIRMATION_ERROR = "ConfirmationError"
    SUCCESS = "Success"

    @property
    def charged(self) -> bool:
        return self is PurchaseStatus.SUCCESS


@dataclass(slots=True, frozen=True)
class PurchaseAttempt:
    """Outcome of one payment-form-plus-confirmation cycle."""

    phone_number: str
    item_id: int
    attempt: int
    status: PurchaseStatus
    balance: int
    error: str | None = None

    def __post_init__(self) -> None:
        if self.attempt < 1:
            raise InvariantViolation("attempt numbers start at 1", field="attempt")


@dataclass(slots=True, frozen=True)
class SelfDestination:
    def describe(self) -> str:
        return "self"


@dataclass(slots=True, frozen=True)
class ChannelDestination:
    channel_id: int
    access_hash: int

    def describe(self) -> str:
        return f"channel:{self.channel_id}"


Destination = SelfDestination | ChannelDestination


@dataclass(slots=True, frozen=True)
class DestinationRequest:
    """Unresolved purchase destination: ``self`` or a channel username."""

    username: str | None = None

    @classmethod
    def parse(cls, value: str | None) -> DestinationRequest:
        cleaned = (value or "").strip().lstrip("@")
        if not cleaned or cleaned.lower() == "self":
            return cls()
        return cls(username=cleaned)

    @property
    def is_self(self) -> bool:
        return self.username is None
