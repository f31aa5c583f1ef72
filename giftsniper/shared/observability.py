# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from prometheus_client import Counter, Gauge, start_http_server

from giftsniper.shared.logging import logger

PURCHASE_ATTEMPTS = Counter(
    "giftsniper_purchase_attempts_total",
    "Purchase attempts by outcome",
    labelnames=("status",),
)
POLL_TICKS = Counter(
    "giftsniper_poll_ticks_total",
    "Catalog poll ticks by outcome",
    labelnames=("outcome",),
)
NOTIFICATIONS = Counter(
    "giftsniper_notifications_total",
    "Bot messages sent per recipient",
    labelnames=("kind", "result"),
)
SEEN_ITEMS = Gauge("giftsniper_seen_items", "Gift ids already selected for purchase")


def serve_metrics(port: int | None) -> None:
    if not port:
        return
    start_http_server(port)
    logger.info(f"metrics:listening port={port}")


__all__ = [
    "NOTIFICATIONS",
    "POLL_TICKS",
    "PURCHASE_ATTEMPTS",
    "SEEN_ITEMS",
    "serve_metrics",
]
