# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""MTProto account session backed by a pyrogram client."""

from __future__ import annotations

import asyncio
import getpass
from collections.abc import Awaitable, Callable
from typing import Any

from pyrogram import Client, raw, types
from pyrogram.errors import RPCError, SessionPasswordNeeded
from pyrogram.file_id import FileId, FileType, ThumbnailSource

from giftsniper.application.interfaces import SessionRepository
from giftsniper.domain import (
    AssetRef,
    CatalogEntry,
    CatalogItem,
    CatalogNotModified,
    CatalogSnapshot,
    ChannelDestination,
    Destination,
    DownloadAsset,
    GetCatalog,
    GetPaymentForm,
    GetStarsBalance,
    GiftInvoice,
    InvariantViolationError,
    PaymentForm,
    Procedure,
    ResolveUsername,
    SendPaymentForm,
    UniqueCatalogItem,
)
from giftsniper.shared.errors import TransportError
from giftsniper.shared.logging import logger

Prompt = Callable[[str, bool], Awaitable[str]]

_TRANSPORT_FAILURES = (RPCError, OSError, TimeoutError)
_THUMB_SIZE = "s"


def asset_from_document(document: Any) -> AssetRef | None:
    if not isinstance(document, raw.types.Document):
        return None
    thumb = _THUMB_SIZE
    sizes = [getattr(size, "type", None) for size in document.thumbs or []]
    if sizes and _THUMB_SIZE not in sizes:
        thumb = str(sizes[0])
    return AssetRef(
        dc_id=document.dc_id,
        media_id=document.id,
        access_hash=document.access_hash,
        file_reference=document.file_reference,
        thumb_size=thumb,
    )


def entry_from_raw(gift: Any) -> CatalogEntry:
    if not isinstance(gift, raw.types.StarGift):
        return UniqueCatalogItem(item_id=int(gift.id))
    return CatalogItem(
        item_id=int(gift.id),
        price=int(gift.stars),
        limited=bool(gift.limited),
        total_supply=gift.availability_total,
        remaining_supply=gift.availability_remains,
        sold_out=bool(gift.sold_out),
        asset=asset_from_document(gift.sticker),
    )


def snapshot_from_raw(result: Any) -> CatalogSnapshot | CatalogNotModified:
    if isinstance(result, raw.types.payments.StarGiftsNotModified):
        return CatalogNotModified()
    return CatalogSnapshot(version=int(result.hash), entries=_valid_entries(result.gifts))


def _valid_entries(gifts: Any) -> tuple[CatalogEntry, ...]:
    entries: list[CatalogEntry] = []
    for gift in gifts:
        try:
            entries.append(entry_from_raw(gift))
        except InvariantViolationError as exc:
            logger.warning(f"session:skip_gift id={getattr(gift, 'id', None)} reason={exc}")
    return tuple(entries)


def input_peer(destination: Destination) -> Any:
    if isinstance(destination, ChannelDestination):
        return raw.types.InputPeerChannel(
            channel_id=destination.channel_id, access_hash=destination.access_hash
        )
    return raw.types.InputPeerSelf()


def input_invoice(invoice: GiftInvoice) -> Any:
    message = None
    if invoice.message:
        message = raw.types.TextWithEntities(text=invoice.message, entities=[])
    return raw.types.InputInvoiceStarGift(
        peer=input_peer(invoice.recipient),
        gift_id=invoice.item_id,
        hide_name=invoice.hide_name or None,
        include_upgrade=invoice.include_upgrade or None,
        message=message,
    )


def thumbnail_file_id(asset: AssetRef, dc_id: int | None = None) -> str:
    return FileId(
        file_type=FileType.THUMBNAIL,
        dc_id=asset.dc_id if dc_id is None else dc_id,
        media_id=asset.media_id,
        access_hash=asset.access_hash,
        file_reference=asset.file_reference,
        thumbnail_source=ThumbnailSource.THUMBNAIL,
        thumbnail_file_type=FileType.STICKER,
        thumbnail_size=asset.thumb_size,
        volume_id=0,
        local_id=0,
    ).encode()


def star_amount(balance: Any) -> int:
    return int(getattr(balance, "amount", balance) or 0)


class PyrogramAccountSession:
    """One logged-in account; every remote failure surfaces as ``TransportError``."""

    def __init__(
        self, client: Client, phone_number: str, sessions: SessionRepository | None = None
    ) -> None:
        self._client = client
        self._phone_number = phone_number
        self._sessions = sessions

    @property
    def phone_number(self) -> str:
        return self._phone_number

    @property
    def client(self) -> Client:
        return self._client

    async def invoke(self, procedure: Procedure) -> Any:
        name = type(procedure).__name__
        try:
            return await self._dispatch(procedure)
        except _TRANSPORT_FAILURES as exc:
            logger.debug(
                f"session:invoke_fail phone={self._phone_number} proc={name} error={exc!r}"
            )
            raise TransportError(name, _describe(exc)) from exc

    async def invoke_in_dc(self, procedure: Procedure, dc_id: int) -> Any:
        name = type(procedure).__name__
        try:
            if isinstance(procedure, DownloadAsset):
                return await self._download(procedure.asset, dc_id)
            home_dc = await self._client.storage.dc_id()
            if dc_id != home_dc:
                raise TransportError(name, f"procedure not routable to dc {dc_id}")
            return await self._dispatch(procedure)
        except _TRANSPORT_FAILURES as exc:
            raise TransportError(name, _describe(exc)) from exc

    async def fetch_balance(self) -> int:
        return await self.invoke(GetStarsBalance())

    async def sync_session(self) -> None:
        if self._sessions is None:
            return
        exported = await self._client.export_session_string()
        await asyncio.to_thread(self._sessions.save, self._phone_number, exported.encode())
        logger.debug(f"session:synced phone={self._phone_number}")

    async def close(self) -> None:
        if self._client.is_initialized:
            await self._client.terminate()
        if self._client.is_connected:
            await self._client.disconnect()

    async def _dispatch(self, procedure: Procedure) -> Any:
        client = self._client
        if isinstance(procedure, GetCatalog):
            result = await client.invoke(
                raw.functions.payments.GetStarGifts(hash=procedure.version)
            )
            return snapshot_from_raw(result)
        if isinstance(procedure, GetStarsBalance):
            status = await client.invoke(
                raw.functions.payments.GetStarsStatus(peer=raw.types.InputPeerSelf())
            )
            return star_amount(status.balance)
        if isinstance(procedure, GetPaymentForm):
            form = await client.invoke(
                raw.functions.payments.GetPaymentForm(invoice=input_invoice(procedure.invoice))
            )
            return PaymentForm(form_id=int(form.form_id))
        if isinstance(procedure, SendPaymentForm):
            await client.invoke(
                raw.functions.payments.SendStarsForm(
                    form_id=procedure.form_id, invoice=input_invoice(procedure.invoice)
                )
            )
            return None
        if isinstance(procedure, ResolveUsername):
            return await self._resolve_channel(procedure.username)
        if isinstance(procedure, DownloadAsset):
            return await self._download(procedure.asset, procedure.asset.dc_id)
        raise TypeError(f"unsupported procedure {procedure!r}")

    async def _resolve_channel(self, username: str) -> ChannelDestination:
        resolved = await self._client.invoke(
            raw.functions.contacts.ResolveUsername(username=username)
        )
        if not isinstance(resolved.peer, raw.types.PeerChannel):
            raise TransportError("ResolveUsername", f"{username} is not a channel")
        channel_id = resolved.peer.channel_id
        for chat in resolved.chats:
            if chat.id == channel_id:
                return ChannelDestination(channel_id=channel_id, access_hash=chat.access_hash)
        raise TransportError("ResolveUsername", f"{username} resolved without access hash")

    async def _download(self, asset: AssetRef, dc_id: int) -> bytes:
        buffer = await self._client.download_media(
            thumbnail_file_id(asset, dc_id), in_memory=True
        )
        if buffer is None:
            raise TransportError("DownloadAsset", f"empty download media_id={asset.media_id}")
        return bytes(buffer.getbuffer())


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


async def console_prompt(text: str, secret: bool = False) -> str:
    reader = getpass.getpass if secret else input
    answer = await asyncio.to_thread(reader, text)
    return answer.strip()


async def connect_session(
    phone_number: str,
    api_id: int,
    api_hash: str,
    sessions: SessionRepository,
    *,
    prompt: Prompt = console_prompt,
) -> PyrogramAccountSession:
    """Open the stored session for ``phone_number`` or log in interactively."""

    stored = await asyncio.to_thread(sessions.get, phone_number)
    client = Client(
        name=phone_number,
        api_id=api_id,
        api_hash=api_hash,
        phone_number=phone_number,
        session_string=stored.decode() if stored else None,
        in_memory=True,
        no_updates=True,
    )
    authorized = await client.connect()
    if not authorized:
        logger.info(f"session:login phone={phone_number} stored={stored is not None}")
        await _login(client, phone_number, prompt)
    await client.initialize()

    session = PyrogramAccountSession(client, phone_number, sessions)
    await session.sync_session()
    logger.info(f"session:ready phone={phone_number}")
    return session


async def _login(client: Client, phone_number: str, prompt: Prompt) -> None:
    sent = await client.send_code(phone_number)
    code = await prompt(f"Login code for {phone_number}: ", False)
    try:
        signed = await client.sign_in(phone_number, sent.phone_code_hash, code)
    except SessionPasswordNeeded:
        password = await prompt(f"Two-step password for {phone_number}: ", True)
        await client.check_password(password)
        return
    if not isinstance(signed, types.User):
        raise TransportError("SignIn", f"account {phone_number} is not registered")


__all__ = [
    "PyrogramAccountSession",
    "asset_from_document",
    "connect_session",
    "console_prompt",
    "entry_from_raw",
    "input_invoice",
    "snapshot_from_raw",
    "thumbnail_file_id",
]
