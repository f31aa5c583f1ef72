import asyncio

import pytest
from fakes import FakeSession, RecordingNotifier, make_item, snapshot

from giftsniper.application import PurchaseOrchestrator
from giftsniper.domain import (
    ChannelDestination,
    DestinationRequest,
    GetCatalog,
    GetPaymentForm,
    InvariantViolation,
    PurchaseStatus,
    ResolveUsername,
    SelfDestination,
)
from giftsniper.shared.errors import (
    DestinationResolutionError,
    PriceNotFoundError,
    TransportError,
)


class MemoryPeers:
    def __init__(self) -> None:
        self.rows: dict[str, ChannelDestination] = {}

    def get(self, username: str) -> ChannelDestination | None:
        return self.rows.get(username)

    def save(self, username: str, channel: ChannelDestination) -> None:
        self.rows[username] = channel


def test_two_accounts_price_100_limit_2() -> None:
    rich = FakeSession("+10000000001", balance=250)
    poor = FakeSession("+10000000002", balance=50)
    notifier = RecordingNotifier()

    runs = asyncio.run(PurchaseOrchestrator([rich, poor], notifier).buy([1], {1: 100}, 2))

    assert [len(run.succeeded()) for run in runs] == [2, 0]
    assert [run.balance_end for run in runs] == [50, 50]
    assert {status[0] for status in notifier.statuses} == {"+10000000001"}
    assert poor.calls == []


def test_two_accounts_price_40_limit_2() -> None:
    rich = FakeSession("+10000000001", balance=250)
    poor = FakeSession("+10000000002", balance=50)
    notifier = RecordingNotifier()

    runs = asyncio.run(PurchaseOrchestrator([rich, poor], notifier).buy([1], {1: 40}, 2))

    assert [len(run.succeeded()) for run in runs] == [2, 1]
    assert [run.balance_end for run in runs] == [170, 10]


def test_failing_account_does_not_stop_the_others() -> None:
    broken = FakeSession("+10000000001", balance=500)
    broken.balance_error = TransportError("GetStarsBalance", "AUTH_KEY_UNREGISTERED")
    healthy = FakeSession("+10000000002", balance=300)
    notifier = RecordingNotifier()

    with pytest.raises(TransportError):
        asyncio.run(PurchaseOrchestrator([broken, healthy], notifier).buy([1], {1: 100}, 3))

    assert len(healthy.calls_of(GetPaymentForm)) == 3
    assert [s[4] for s in notifier.statuses] == [PurchaseStatus.SUCCESS] * 3


def test_first_error_in_account_order_is_raised() -> None:
    first = FakeSession("+10000000001", balance=500)
    first.balance_error = TransportError("GetStarsBalance", "first")
    second = FakeSession("+10000000002", balance=500)
    second.balance_error = TransportError("GetStarsBalance", "second")

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(
            PurchaseOrchestrator([first, second], RecordingNotifier()).buy([1], {1: 100})
        )

    assert excinfo.value.detail == "first"


def test_no_accounts_is_a_programming_error() -> None:
    with pytest.raises(InvariantViolation):
        asyncio.run(PurchaseOrchestrator([], RecordingNotifier()).buy([1], {1: 100}))


def test_empty_item_list_is_a_no_op() -> None:
    session = FakeSession(balance=100)

    assert asyncio.run(PurchaseOrchestrator([session], RecordingNotifier()).buy([])) == []
    assert session.calls == []


def test_first_account_is_the_price_oracle() -> None:
    oracle = FakeSession("+10000000001", balance=0, catalog=snapshot(3, make_item(1, 100)))
    other = FakeSession("+10000000002", balance=0)

    asyncio.run(PurchaseOrchestrator([oracle, other], RecordingNotifier()).buy([1]))

    assert oracle.calls_of(GetCatalog) == [GetCatalog(version=0)]
    assert other.calls_of(GetCatalog) == []


def test_unknown_price_aborts_before_any_purchase() -> None:
    session = FakeSession(balance=1000, catalog=snapshot(3, make_item(1, 100)))

    with pytest.raises(PriceNotFoundError):
        asyncio.run(PurchaseOrchestrator([session], RecordingNotifier()).buy([1, 2]))

    assert session.calls_of(GetPaymentForm) == []


def test_unresolvable_destination_aborts_round() -> None:
    session = FakeSession(balance=1000)
    orchestrator = PurchaseOrchestrator([session], RecordingNotifier())

    with pytest.raises(DestinationResolutionError):
        asyncio.run(orchestrator.buy([1], {1: 10}, 1, DestinationRequest.parse("@missing")))

    assert session.calls_of(GetPaymentForm) == []


def test_destination_resolved_once_and_stored() -> None:
    session = FakeSession(balance=1000)
    channel = ChannelDestination(channel_id=100, access_hash=7)
    session.channels["drops"] = channel
    peers = MemoryPeers()
    orchestrator = PurchaseOrchestrator(
        [session], RecordingNotifier(), peers=peers, gift_to_destination=True
    )
    request = DestinationRequest.parse("@drops")

    asyncio.run(orchestrator.buy([1], {1: 10}, 1, request))
    asyncio.run(orchestrator.buy([1], {1: 10}, 1, request))

    assert len(session.calls_of(ResolveUsername)) == 1
    assert peers.rows == {"drops": channel}
    assert {form.invoice.recipient for form in session.calls_of(GetPaymentForm)} == {channel}


def test_stored_peer_skips_remote_resolution() -> None:
    session = FakeSession(balance=1000)
    peers = MemoryPeers()
    peers.rows["drops"] = ChannelDestination(channel_id=100, access_hash=7)
    orchestrator = PurchaseOrchestrator([session], RecordingNotifier(), peers=peers)

    asyncio.run(orchestrator.buy([1], {1: 10}, 1, DestinationRequest.parse("drops")))

    assert session.calls_of(ResolveUsername) == []


def test_invoices_go_to_self_unless_enabled() -> None:
    session = FakeSession(balance=1000)
    session.channels["drops"] = ChannelDestination(channel_id=100, access_hash=7)
    orchestrator = PurchaseOrchestrator([session], RecordingNotifier())

    asyncio.run(orchestrator.buy([1], {1: 10}, 1, DestinationRequest.parse("drops")))

    assert len(session.calls_of(ResolveUsername)) == 1
    assert session.calls_of(GetPaymentForm)[0].invoice.recipient == SelfDestination()
