from __future__ import annotations

import asyncio
from typing import Any

from fakes import RecordingNotifier, SpawnRecorder

from giftsniper.domain import DestinationRequest
from giftsniper.interfaces.bot import ADDED_REPLY, REJECTED_REPLY, BotUpdateListener
from giftsniper.shared.errors import DuplicateRecipientError


class FakeBot:
    def __init__(self, updates: list[dict[str, Any]] | None = None) -> None:
        self.updates = updates or []
        self.messages: list[tuple[int, str]] = []
        self.answered: list[tuple[str, str | None]] = []
        self.offsets: list[int | None] = []

    async def get_updates(self, offset: int | None = None, timeout: int = 30) -> list:
        self.offsets.append(offset)
        updates, self.updates = self.updates, []
        return updates

    async def send_message(self, chat_id: int, text: str, **kwargs: Any) -> dict:
        self.messages.append((chat_id, text))
        return {}

    async def answer_callback_query(self, callback_query_id: str, text: str | None = None) -> bool:
        self.answered.append((callback_query_id, text))
        return True


class OnceNotifier(RecordingNotifier):
    async def register_recipient(self, chat_id: int) -> None:
        if chat_id in self.recipients:
            raise DuplicateRecipientError(chat_id)
        await super().register_recipient(chat_id)


class FakeOrchestrator:
    def __init__(self) -> None:
        self.rounds: list[tuple[Any, ...]] = []

    async def buy(self, *args: Any) -> list:
        self.rounds.append(args)
        return []


def message(update_id: int, chat_id: int, username: str | None) -> dict[str, Any]:
    sender = {"id": 1000 + update_id, "username": username} if username else {"id": 5}
    return {
        "update_id": update_id,
        "message": {"message_id": 1, "chat": {"id": chat_id}, "from": sender, "text": "/start"},
    }


def callback(update_id: int, data: str | None, username: str = "boss") -> dict[str, Any]:
    query: dict[str, Any] = {"id": f"cb{update_id}", "from": {"id": 1, "username": username}}
    if data is not None:
        query["data"] = data
    return {"update_id": update_id, "callback_query": query}


def make_listener(
    bot: FakeBot, notifier: RecordingNotifier | None = None
) -> tuple[BotUpdateListener, FakeOrchestrator, SpawnRecorder]:
    orchestrator = FakeOrchestrator()
    spawn = SpawnRecorder()
    listener = BotUpdateListener(
        bot=bot,  # type: ignore[arg-type]
        notifier=notifier or OnceNotifier(),
        orchestrator=orchestrator,  # type: ignore[arg-type]
        admin_usernames=["@Boss"],
        attempt_limit=3,
        destination=DestinationRequest.parse("drops"),
        spawn=spawn,
    )
    return listener, orchestrator, spawn


def test_admin_message_registers_chat_idempotently() -> None:
    notifier = OnceNotifier()
    bot = FakeBot([message(1, -100, "boss"), message(2, -100, "boss")])
    listener, _, _ = make_listener(bot, notifier)

    asyncio.run(listener.poll_once())

    assert notifier.recipients == [-100]
    assert bot.messages == [(-100, ADDED_REPLY), (-100, ADDED_REPLY)]


def test_stranger_is_rejected() -> None:
    notifier = OnceNotifier()
    bot = FakeBot([message(1, 77, "mallory"), message(2, 78, None)])
    listener, _, _ = make_listener(bot, notifier)

    asyncio.run(listener.poll_once())

    assert notifier.recipients == []
    assert bot.messages == [(77, REJECTED_REPLY), (78, REJECTED_REPLY)]


def test_buy_button_starts_a_detached_round() -> None:
    bot = FakeBot([callback(5, "123")])
    listener, orchestrator, spawn = make_listener(bot)

    asyncio.run(listener.poll_once())
    asyncio.run(spawn.run_all())

    assert bot.answered == [("cb5", None)]
    assert orchestrator.rounds == [([123], None, 3, DestinationRequest(username="drops"))]


def test_bad_callbacks_are_ignored() -> None:
    bot = FakeBot([callback(1, "not-a-number"), callback(2, None)])
    listener, orchestrator, spawn = make_listener(bot)

    asyncio.run(listener.poll_once())

    assert bot.answered == []
    assert spawn.spawned == []
    assert orchestrator.rounds == []


def test_foreign_callback_is_answered_with_rejection() -> None:
    bot = FakeBot([callback(3, "9", "mallory")])
    listener, orchestrator, spawn = make_listener(bot)

    asyncio.run(listener.poll_once())

    assert bot.answered == [("cb3", REJECTED_REPLY)]
    assert spawn.spawned == []
    assert orchestrator.rounds == []


def test_offset_advances_past_last_update() -> None:
    bot = FakeBot([message(7, 1, "boss"), message(9, 1, "boss")])
    listener, _, _ = make_listener(bot)

    handled = asyncio.run(listener.poll_once())
    asyncio.run(listener.poll_once())

    assert handled == 2
    assert listener.offset == 10
    assert bot.offsets == [None, 10]
