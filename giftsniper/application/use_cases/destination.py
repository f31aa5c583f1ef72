# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import asyncio

from giftsniper.domain import (
    ChannelDestination,
    Destination,
    DestinationRequest,
    ResolveUsername,
    SelfDestination,
)
from giftsniper.shared.errors import (
    DestinationResolutionError,
    PersistenceError,
    TransportError,
)
from giftsniper.shared.logging import logger

from ..interfaces import PeerRepository, RemoteInvoker


class DestinationResolver:
    """Resolves channel usernames once and remembers the result.

    Lookups go memory -> peers table -> remote ``ResolveUsername``.
    """

    def __init__(self, invoker: RemoteInvoker, peers: PeerRepository | None = None):
        self._invoker = invoker
        self._peers = peers
        self._cache: dict[str, ChannelDestination] = {}

    async def resolve(self, request: DestinationRequest) -> Destination:
        if request.is_self:
            return SelfDestination()
        username = str(request.username)
        cached = self._cache.get(username)
        if cached is not None:
            return cached
        channel = await self._load_stored(username)
        if channel is None:
            channel = await self._resolve_remote(username)
            await self._store(username, channel)
        self._cache[username] = channel
        logger.info(f"destination:resolved username={username} channel_id={channel.channel_id}")
        return channel

    async def _resolve_remote(self, username: str) -> ChannelDestination:
        try:
            return await self._invoker.invoke(ResolveUsername(username=username))
        except TransportError as exc:
            raise DestinationResolutionError(username, exc.detail) from exc

    async def _load_stored(self, username: str) -> ChannelDestination | None:
        if self._peers is None:
            return None
        try:
            return await asyncio.to_thread(self._peers.get, username)
        except PersistenceError:
            logger.exception(f"destination:peer_load_fail username={username}")
            return None

    async def _store(self, username: str, channel: ChannelDestination) -> None:
        if self._peers is None:
            return
        try:
            await asyncio.to_thread(self._peers.save, username, channel)
        except PersistenceError:
            logger.exception(f"destination:peer_save_fail username={username}")
