# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from giftsniper.domain import ChannelDestination
from giftsniper.infrastructure.db.models import CachedPeer, RecipientChat, SessionRecord
from giftsniper.infrastructure.encryption import SessionCipher
from giftsniper.infrastructure.unit_of_work import unit_of_work_scope
from giftsniper.shared.errors import DuplicateRecipientError
from giftsniper.shared.logging import logger


class SqlAlchemySessionRepository:
    """Stores exported account sessions keyed by phone number."""

    def __init__(
        self, session_factory: Callable[[], Session], cipher: SessionCipher | None = None
    ):
        self._session_factory = session_factory
        self._cipher = cipher

    def get(self, phone_number: str) -> bytes | None:
        with unit_of_work_scope(self._session_factory, "sessions.get") as session:
            blob = session.scalar(
                select(SessionRecord.session).where(SessionRecord.phone_number == phone_number)
            )
        if blob is None:
            return None
        return self._decode(phone_number, blob)

    def save(self, phone_number: str, blob: bytes) -> None:
        stored = self._cipher.encrypt(blob) if self._cipher else blob
        with unit_of_work_scope(self._session_factory, "sessions.save") as session:
            record = session.scalar(
                select(SessionRecord).where(SessionRecord.phone_number == phone_number)
            )
            if record is None:
                session.add(SessionRecord(phone_number=phone_number, session=stored))
            else:
                record.session = stored

    def _decode(self, phone_number: str, blob: bytes) -> bytes:
        if self._cipher is None:
            return blob
        try:
            return self._cipher.decrypt(blob)
        except ValueError:
            # rows written before a key was configured
            logger.warning(f"sessions:plaintext row phone={phone_number}")
            return blob


class SqlAlchemyRecipientRepository:
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def add(self, chat_id: int) -> None:
        with unit_of_work_scope(self._session_factory, "chats.add") as session:
            session.add(RecipientChat(chat_id=chat_id))
            try:
                session.flush()
            except IntegrityError as exc:
                raise DuplicateRecipientError(chat_id) from exc

    def list_chat_ids(self) -> list[int]:
        with unit_of_work_scope(self._session_factory, "chats.list") as session:
            rows = session.scalars(select(RecipientChat.chat_id).order_by(RecipientChat.id))
            return [int(chat_id) for chat_id in rows]


class SqlAlchemyPeerRepository:
    """Username -> channel reference cache."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get(self, username: str) -> ChannelDestination | None:
        with unit_of_work_scope(self._session_factory, "peers.get") as session:
            row = session.scalar(select(CachedPeer).where(CachedPeer.username == username))
            if row is None or row.peer_type != "channel":
                return None
            return ChannelDestination(channel_id=int(row.peer_id), access_hash=int(row.access_hash))

    def save(self, username: str, channel: ChannelDestination) -> None:
        with unit_of_work_scope(self._session_factory, "peers.save") as session:
            row = session.scalar(select(CachedPeer).where(CachedPeer.username == username))
            if row is None:
                row = CachedPeer(username=username, peer_type="channel")
                session.add(row)
            row.peer_id = channel.channel_id
            row.access_hash = channel.access_hash


__all__ = [
    "SqlAlchemyPeerRepository",
    "SqlAlchemyRecipientRepository",
    "SqlAlchemySessionRepository",
]
