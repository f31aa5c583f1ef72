from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest
from pyrogram import raw
from pyrogram.errors import BadRequest

from giftsniper.domain import (
    CatalogItem,
    CatalogNotModified,
    CatalogSnapshot,
    ChannelDestination,
    GetCatalog,
    GetPaymentForm,
    GetStarsBalance,
    GiftInvoice,
    ResolveUsername,
    UniqueCatalogItem,
)
from giftsniper.infrastructure.telegram import PyrogramAccountSession
from giftsniper.infrastructure.telegram.pyrogram_session import (
    entry_from_raw,
    input_invoice,
    snapshot_from_raw,
)
from giftsniper.shared.errors import TransportError

PHONE = "+10000000001"


class StubStorage:
    def __init__(self, dc_id: int) -> None:
        self._dc_id = dc_id

    async def dc_id(self) -> int:
        return self._dc_id


class StubClient:
    """Answers raw calls from ``results`` keyed by function class name."""

    def __init__(self, results: dict[str, Any] | None = None, home_dc: int = 2) -> None:
        self.results = results or {}
        self.error: BaseException | None = None
        self.requests: list[Any] = []
        self.storage = StubStorage(home_dc)
        self.exported = "exported-session"

    async def invoke(self, query: Any) -> Any:
        self.requests.append(query)
        if self.error is not None:
            raise self.error
        return self.results[type(query).__name__]

    async def export_session_string(self) -> str:
        return self.exported


class MemorySessions:
    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    def get(self, phone_number: str) -> bytes | None:
        return self.blobs.get(phone_number)

    def save(self, phone_number: str, blob: bytes) -> None:
        self.blobs[phone_number] = blob


def star_gift(gift_id: int, stars: int = 25, **extra: Any) -> Any:
    return raw.types.StarGift(
        id=gift_id,
        sticker=raw.types.DocumentEmpty(id=1),
        stars=stars,
        convert_stars=stars,
        **extra,
    )


def unique_gift(gift_id: int) -> Any:
    # required constructor fields differ between layers; only the id is read
    gift = raw.types.StarGiftUnique.__new__(raw.types.StarGiftUnique)
    gift.id = gift_id
    return gift


def make_session(
    client: StubClient, sessions: MemorySessions | None = None
) -> PyrogramAccountSession:
    return PyrogramAccountSession(client, PHONE, sessions)  # type: ignore[arg-type]


def test_limited_star_gift_maps_to_item() -> None:
    gift = star_gift(5, 25, limited=True, availability_total=5, availability_remains=2)

    item = entry_from_raw(gift)

    assert item == CatalogItem(
        item_id=5, price=25, limited=True, total_supply=5, remaining_supply=2
    )
    assert item.asset is None


def test_unique_gift_is_not_a_plain_item() -> None:
    assert entry_from_raw(unique_gift(9)) == UniqueCatalogItem(item_id=9)


def test_not_modified_maps_to_marker() -> None:
    assert isinstance(
        snapshot_from_raw(raw.types.payments.StarGiftsNotModified()), CatalogNotModified
    )


def test_invalid_gift_is_skipped_not_fatal() -> None:
    result = SimpleNamespace(hash=77, gifts=[star_gift(1, 0), star_gift(2, 10), unique_gift(3)])

    snapshot = snapshot_from_raw(result)

    assert isinstance(snapshot, CatalogSnapshot)
    assert snapshot.version == 77
    assert [entry.item_id for entry in snapshot.entries] == [2, 3]


def test_invoice_targets_self_or_channel() -> None:
    own = input_invoice(GiftInvoice(item_id=4))
    channel = input_invoice(
        GiftInvoice(item_id=4, recipient=ChannelDestination(channel_id=10, access_hash=11))
    )

    assert isinstance(own.peer, raw.types.InputPeerSelf)
    assert isinstance(channel.peer, raw.types.InputPeerChannel)
    assert (channel.peer.channel_id, channel.peer.access_hash) == (10, 11)
    assert own.gift_id == 4


@pytest.mark.parametrize(
    "error",
    [BadRequest("STARGIFT_USAGE_LIMITED"), OSError("connection lost"), TimeoutError()],
)
def test_remote_failures_become_transport_errors(error: BaseException) -> None:
    client = StubClient()
    client.error = error

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(make_session(client).invoke(GetPaymentForm(GiftInvoice(item_id=1))))

    assert excinfo.value.context["procedure"] == "GetPaymentForm"
    assert excinfo.value.detail.startswith(type(error).__name__)


def test_catalog_and_balance_calls() -> None:
    client = StubClient(
        {
            "GetStarGifts": raw.types.payments.StarGiftsNotModified(),
            "GetStarsStatus": SimpleNamespace(balance=SimpleNamespace(amount=250)),
        }
    )
    session = make_session(client)

    assert isinstance(asyncio.run(session.invoke(GetCatalog(version=12))), CatalogNotModified)
    assert asyncio.run(session.fetch_balance()) == 250
    assert client.requests[0].hash == 12


def test_resolve_username_reads_channel_access_hash() -> None:
    client = StubClient(
        {
            "ResolveUsername": SimpleNamespace(
                peer=raw.types.PeerChannel(channel_id=5),
                chats=[
                    SimpleNamespace(id=4, access_hash=1),
                    SimpleNamespace(id=5, access_hash=99),
                ],
            )
        }
    )

    channel = asyncio.run(make_session(client).invoke(ResolveUsername("drops")))

    assert channel == ChannelDestination(channel_id=5, access_hash=99)


def test_foreign_dc_refuses_non_download_procedures() -> None:
    client = StubClient(home_dc=2)

    with pytest.raises(TransportError):
        asyncio.run(make_session(client).invoke_in_dc(GetStarsBalance(), 4))

    assert client.requests == []


def test_sync_session_upserts_exported_string() -> None:
    client = StubClient()
    sessions = MemorySessions()
    session = make_session(client, sessions)

    asyncio.run(session.sync_session())
    client.exported = "refreshed"
    asyncio.run(session.sync_session())

    assert sessions.blobs == {PHONE: b"refreshed"}
