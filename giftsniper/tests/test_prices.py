import asyncio

import pytest
from fakes import FakeSession, make_item, snapshot

from giftsniper.application import PriceResolver
from giftsniper.domain import CatalogNotModified, GetCatalog, UniqueCatalogItem
from giftsniper.shared.errors import PriceNotFoundError, UnexpectedNotModifiedError


def test_known_prices_keep_input_order() -> None:
    session = FakeSession()
    resolver = PriceResolver(session)

    prices = asyncio.run(resolver.resolve([3, 1, 2], {1: 10, 2: 20, 3: 30}))

    assert prices == [30, 10, 20]
    assert session.calls == []


def test_missing_known_price_fails_without_partial_result() -> None:
    resolver = PriceResolver(FakeSession())

    with pytest.raises(PriceNotFoundError) as excinfo:
        asyncio.run(resolver.resolve([1, 2], {1: 10}))

    assert excinfo.value.item_id == 2


def test_prices_fetched_from_full_catalog() -> None:
    session = FakeSession(
        catalog=snapshot(
            42,
            make_item(1, 15),
            UniqueCatalogItem(item_id=2),
            make_item(3, 500, limited=False),
        )
    )

    prices = asyncio.run(PriceResolver(session).resolve([3, 1]))

    assert prices == [500, 15]
    assert session.calls == [GetCatalog(version=0)]


def test_unique_entries_have_no_price() -> None:
    session = FakeSession(catalog=snapshot(42, UniqueCatalogItem(item_id=2)))

    with pytest.raises(PriceNotFoundError):
        asyncio.run(PriceResolver(session).resolve([2]))


def test_not_modified_for_full_fetch_is_an_error() -> None:
    session = FakeSession(catalog=CatalogNotModified())

    with pytest.raises(UnexpectedNotModifiedError):
        asyncio.run(PriceResolver(session).resolve([1]))
