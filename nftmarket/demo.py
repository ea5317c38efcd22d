#!/usr/bin/env python3
"""
Marketplace Demo

Deploys a collection and a marketplace in memory, then walks one asset
through listing and sale, logging each step.

Usage:
    nftmarket-demo --price 1000000000000000000
    python -m nftmarket.demo --json-logs
"""

from typing import Any

import structlog

from nftmarket.config import get_settings
from nftmarket.monitoring.logging import configure_logging, log_duration
from nftmarket.payments.memory import InMemoryPaymentGateway
from nftmarket.registry.memory import InMemoryAssetRegistry
from nftmarket.services.marketplace import MarketplaceLedger

logger = structlog.get_logger(__name__)

ONE_ETHER = 10**18


def run_demo(
    price: int = ONE_ETHER,
    royalty_rate: int = 10,
    creator: str = "creator",
    buyer: str = "collector",
) -> dict[str, Any]:
    """
    List and sell one freshly minted asset.

    Returns:
        Summary with the listing, the sale split and final balances
    """
    registry = InMemoryAssetRegistry()
    payments = InMemoryPaymentGateway()
    ledger = MarketplaceLedger(registry, payments)

    nft = registry.create_collection("MyToken", "TKN", "abc.com/", owner=creator)
    logger.info("collection_deployed", asset_contract=nft)
    logger.info("marketplace_deployed", address=ledger.address)

    token_id = registry.admin_mint(nft, caller=creator)
    ledger.set_royalties(nft, royalty_rate, caller=creator)
    registry.approve(nft, token_id, caller=creator, spender=ledger.address)

    listing_id = ledger.add_item_to_market(nft, token_id, price, caller=creator)

    payments.deposit(buyer, price)
    with log_duration(logger, "buy_item", listing_id=listing_id):
        sale = ledger.buy_item(listing_id, buyer=buyer, payment_amount=price)

    return {
        "asset_contract": nft,
        "listing_id": listing_id,
        "listing": ledger.get_item(listing_id).model_dump(mode="json"),
        "sale": sale.model_dump(mode="json"),
        "buyer_assets": registry.balance_of(nft, buyer),
        "balances": {
            account: payments.balance_of(account)
            for account in (creator, buyer, ledger.admin)
        },
    }


def main() -> None:
    import argparse
    import json

    parser = argparse.ArgumentParser(description="Run an in-memory marketplace sale")
    parser.add_argument(
        "--price",
        type=int,
        default=ONE_ETHER,
        help="Listing price in the smallest payment unit",
    )
    parser.add_argument(
        "--royalty",
        type=int,
        default=10,
        help="Collection royalty in whole percent",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Render logs as JSON",
    )

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_output=args.json_logs or settings.log_json,
    )

    summary = run_demo(price=args.price, royalty_rate=args.royalty)
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
