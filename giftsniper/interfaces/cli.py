# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Command line entry points: ``start``, ``buy-gift`` and ``login``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from giftsniper.application import CatalogPoller
from giftsniper.infrastructure.container import Container
from giftsniper.interfaces.bot import BotUpdateListener
from giftsniper.shared.config import AppConfig, load_config
from giftsniper.shared.logging import logger, setup_logging
from giftsniper.shared.observability import serve_metrics
from giftsniper.shared.utils import drain_detached


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="giftsniper", description="Watch the star gift catalog and buy new gifts."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    start = commands.add_parser("start", help="poll the catalog and listen for bot updates")
    start.add_argument(
        "--ignore-not-limited",
        action="store_true",
        help="also announce gifts without a supply bound",
    )
    start.add_argument("--buy", action="store_true", help="buy eligible new gifts")
    start.add_argument("--buy-limit", type=int, default=None, help="attempts per gift")

    buy = commands.add_parser("buy-gift", help="buy one gift with every account")
    buy.add_argument("gift_id", type=int)
    buy.add_argument("limit", type=int, nargs="?", default=None)

    commands.add_parser("login", help="log in every configured account and store sessions")
    return parser


async def run_start(
    config: AppConfig,
    *,
    ignore_not_limited: bool = False,
    buy: bool = False,
    buy_limit: int | None = None,
) -> None:
    container = Container(config)
    try:
        accounts = await container.open_accounts()
        orchestrator = container.orchestrator(accounts)
        settings = container.poller_settings(
            include_non_bounded_items=ignore_not_limited or None,
            purchase_enabled=buy or None,
            attempt_limit=buy_limit,
        )
        poller = CatalogPoller(
            session=accounts[0],
            orchestrator=orchestrator,
            notifier=container.notifier,
            settings=settings,
            initial_version=config.initial_gifts_hash,
        )
        listener = BotUpdateListener(
            bot=container.bot_api,
            notifier=container.notifier,
            orchestrator=orchestrator,
            admin_usernames=config.admin_usernames,
            attempt_limit=settings.attempt_limit,
            destination=settings.destination,
        )
        await asyncio.gather(poller.run(), listener.run())
    finally:
        await container.aclose()


async def run_buy_gift(config: AppConfig, gift_id: int, limit: int | None = None) -> None:
    container = Container(config)
    try:
        accounts = await container.open_accounts()
        runs = await container.orchestrator(accounts).buy(
            [gift_id],
            None,
            limit or config.per_item_attempt_limit,
            config.destination(),
        )
        for run in runs:
            logger.info(
                f"cli:buy_result phone={run.phone_number} bought={len(run.succeeded())} "
                f"spent={run.spent} balance={run.balance_end}"
            )
        await drain_detached()
    finally:
        await container.aclose()


async def run_login(config: AppConfig) -> None:
    container = Container(config)
    try:
        accounts = await container.open_accounts()
        for account in accounts:
            balance = await account.fetch_balance()
            logger.info(f"cli:logged_in phone={account.phone_number} balance={balance}")
    finally:
        await container.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_logging(config.log_level, config.log_file)
    serve_metrics(config.metrics_port)

    if args.command == "start":
        coro = run_start(
            config,
            ignore_not_limited=args.ignore_not_limited,
            buy=args.buy,
            buy_limit=args.buy_limit,
        )
    elif args.command == "buy-gift":
        coro = run_buy_gift(config, args.gift_id, args.limit)
    else:
        coro = run_login(config)

    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("cli:interrupted")
        return 130
    except Exception:
        logger.exception(f"cli:failed command={args.command}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
