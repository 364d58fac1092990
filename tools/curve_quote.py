#!/usr/bin/env python3
"""
Offline bonding-curve quote calculator.

Prices a buy or sell against an explicit (supply, reserve, crr) point without
any pool, ledger or clock, and prints a JSON report.

    python tools/curve_quote.py --supply 1000000000000000000000 \
        --reserve 100000000 --crr-ppm 100000 --buy 10000000
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.core.bonding_curve import buy_impact, calculate_spot_price, sell_impact
from src.core.errors import AmmError
from src.core.fees import apply_fee
from src.integration.config import load_config

log = logging.getLogger("curve_quote")


def build_report(
    *,
    supply: int,
    reserve: int,
    crr_ppm: int,
    trade_fee_bps: int = 0,
    buy: Optional[int] = None,
    sell: Optional[int] = None,
) -> dict[str, Any]:
    report: dict[str, Any] = {
        "schema": "model-amm/curve-quote/v1",
        "supply": supply,
        "reserve": reserve,
        "crr_ppm": crr_ppm,
        "trade_fee_bps": trade_fee_bps,
        "spot_price": calculate_spot_price(supply, reserve, crr_ppm),
    }
    if buy is not None:
        charged = apply_fee(buy, trade_fee_bps)
        impact = buy_impact(supply, reserve, charged.net_amount, crr_ppm)
        report["buy"] = {
            "amount_in": buy,
            "fee": charged.fee,
            "tokens_out": impact.amount_out,
            "impact_bps": impact.impact_bps,
            "new_spot_price": impact.new_spot_price,
        }
    if sell is not None:
        impact = sell_impact(supply, reserve, sell, crr_ppm)
        charged = apply_fee(impact.amount_out, trade_fee_bps)
        report["sell"] = {
            "tokens_in": sell,
            "reserve_out": impact.amount_out,
            "fee": charged.fee,
            "net_out": charged.net_amount,
            "impact_bps": impact.impact_bps,
            "new_spot_price": impact.new_spot_price,
        }
    return report


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Quote a buy/sell on a bonding curve point")
    ap.add_argument("--supply", type=int, required=True, help="token supply (wei)")
    ap.add_argument("--reserve", type=int, required=True, help="reserve balance (base units)")
    ap.add_argument("--crr-ppm", type=int, default=None)
    ap.add_argument("--fee-bps", type=int, default=None)
    ap.add_argument("--config", type=str, default="", help="YAML config providing crr/fee defaults")
    ap.add_argument("--buy", type=int, default=None, help="reserve amount to spend")
    ap.add_argument("--sell", type=int, default=None, help="token amount to sell (wei)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    crr_ppm = args.crr_ppm
    fee_bps = args.fee_bps
    if args.config:
        cfg = load_config(args.config)
        log.debug("loaded %s", args.config)
        crr_ppm = cfg.curve.crr_ppm if crr_ppm is None else crr_ppm
        fee_bps = cfg.curve.trade_fee_bps if fee_bps is None else fee_bps
    if crr_ppm is None:
        raise SystemExit("--crr-ppm or --config is required")

    try:
        report = build_report(
            supply=args.supply,
            reserve=args.reserve,
            crr_ppm=crr_ppm,
            trade_fee_bps=fee_bps or 0,
            buy=args.buy,
            sell=args.sell,
        )
    except AmmError as exc:
        log.error("quote failed: %s", exc)
        return 2

    print(json.dumps(report, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
