"""Command-line snapshot of the stablecoin market.

Usage::

    stable-flow-demo [config.toml] [raw_volume]

The configuration path may also come from ``STABLE_FLOW_CONFIG``.  Charts and
CSV tables are written when ``output.outdir`` is set.
"""

from __future__ import annotations

import logging
import math
import sys
from pathlib import Path

import pandas as pd

from . import aggregation
from .config import Settings, load_settings
from .core import StablecoinRepository
from .formatting import format_currency, format_percent, format_percentage
from .reporting import snapshot_report
from .sources import DefiLlamaClient, UpstreamError
from .visualization import Visualizer
from .volume import VolumeAdjustmentEngine

logger = logging.getLogger(__name__)


def run(settings: Settings, raw_volume: float) -> int:
    engine = VolumeAdjustmentEngine.from_settings(settings)
    metrics = engine.calculate_adjusted_volume(raw_volume)

    print(f"Raw transfer volume:  {format_currency(metrics.raw_volume)}")
    print(f"Adjusted volume:      {format_currency(metrics.adjusted_volume)}")
    print(f"Payments volume:      {format_currency(metrics.payments_volume)}")
    print(f"Source:               {metrics.source}")
    for entry in metrics.breakdown:
        print(f"  {entry.category:<15} {format_currency(entry.volume):>10}  {format_percent(entry.percentage)}")

    client = DefiLlamaClient(timeout=settings.request_timeout, ttl=settings.cache_ttl)
    try:
        payload = client.stablecoins()
        bridge_payload = client.bridges()
    except UpstreamError as exc:
        logger.error("DefiLlama unavailable: %s", exc)
        return 1

    coins = aggregation.stablecoin_metrics(payload)
    chains = aggregation.chain_metrics(payload)
    bridges = aggregation.bridge_metrics(bridge_payload)
    totals = aggregation.total_metrics(coins)
    print(
        f"\nStablecoin market cap: {format_currency(totals['totalMarketCap'])} "
        f"({format_percentage(totals['change24h'])} 24h, {format_percentage(totals['change7d'])} 7d)"
    )
    for coin in coins[:10]:
        print(f"  {coin.symbol:<8} {format_currency(coin.total_circulating):>10}  {format_percent(coin.dominance)}")

    output = settings.output
    outdir = output.get("outdir")
    show = bool(output.get("show", True))
    charts = set(output.get("charts") or [])
    save = (lambda name: str(Path(outdir) / f"{name}.png")) if outdir else (lambda name: None)

    if outdir:
        paths = snapshot_report(
            StablecoinRepository(coins), outdir, chains=chains, bridges=bridges, volume=metrics
        )
        logger.info("Wrote %d tables to %s", len(paths), outdir)
    if "breakdown" in charts:
        Visualizer.bar_volume_breakdown(metrics, save_path=save("breakdown"), show=show)
    if "dominance" in charts:
        Visualizer.pie_dominance(aggregation.dominance_table(coins), save_path=save("dominance"), show=show)
    if "chains" in charts:
        Visualizer.bar_chain_supply(
            pd.DataFrame([c.to_dict() for c in chains]), save_path=save("chains"), show=show
        )
    return 0


def _as_number(arg: str) -> float | None:
    try:
        return float(arg)
    except ValueError:
        return None


def main() -> None:
    """Run the snapshot using configuration from file or environment variables."""
    args = sys.argv[1:]
    numeric = [v for v in map(_as_number, args) if v is not None]
    paths = [a for a in args if _as_number(a) is None]
    settings = load_settings(paths[0] if paths else None)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    raw_volume = numeric[0] if numeric else settings.demo_raw_volume
    if not math.isfinite(raw_volume) or raw_volume <= 0:
        logger.error("raw volume must be positive, got %s", raw_volume)
        sys.exit(2)
    sys.exit(run(settings, raw_volume))


if __name__ == "__main__":
    main()
