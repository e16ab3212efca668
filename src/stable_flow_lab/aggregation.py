"""Reshape raw DefiLlama payloads into dashboard metrics.

Every function here is pure: it takes decoded JSON (``dict``/``list``) as
returned by :class:`~stable_flow_lab.sources.DefiLlamaClient` and produces
model instances or pandas frames.  Missing numbers are treated as zero.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from itertools import combinations
from typing import Any

import pandas as pd

from .core import (
    BridgeMetrics,
    ChainMetrics,
    FlowData,
    FlowLink,
    FlowNode,
    NetworkData,
    NetworkLink,
    NetworkNode,
    StablecoinMetrics,
)
from .core.constants import CHAIN_COLORS, L1_CHAINS, L2_CHAINS

MIN_FLOW_LINK_USD = 50_000
MIN_NETWORK_LINK_USD = 100_000


def _usd(value: Any) -> float:
    """``peggedUSD`` of a DefiLlama amount object, ``0`` when absent."""

    if isinstance(value, Mapping):
        value = value.get("peggedUSD")
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _optional_usd(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, Mapping) and value.get("peggedUSD") is None:
        return None
    return _usd(value)


def pct_change(current: float, previous: float) -> float:
    """Percent change from ``previous``; ``0`` when there is no positive base."""

    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def _hash_string(text: str) -> int:
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def chain_color(chain: str) -> str:
    """Brand color of ``chain`` or a stable hash-derived HSL color."""

    return CHAIN_COLORS.get(chain) or f"hsl({_hash_string(chain) % 360}, 70%, 50%)"


# -----------------
# Stablecoins
# -----------------


def stablecoin_metrics(payload: Mapping[str, Any]) -> list[StablecoinMetrics]:
    """Per-asset supply, 24h/7d/30d change and market-cap dominance.

    A missing previous-period value is taken to equal the current supply, so
    its change reads as ``0``.
    """

    assets: Sequence[Mapping[str, Any]] = payload.get("peggedAssets") or []
    total_market_cap = sum(_usd(coin.get("circulating")) for coin in assets)

    out: list[StablecoinMetrics] = []
    for coin in assets:
        current = _usd(coin.get("circulating"))
        prev_day = _usd(coin.get("circulatingPrevDay")) or current
        prev_week = _usd(coin.get("circulatingPrevWeek")) or current
        prev_month = _usd(coin.get("circulatingPrevMonth")) or current

        circulating: dict[str, dict[str, float | None]] = {}
        for chain, data in (coin.get("chainCirculating") or {}).items():
            circulating[chain] = {
                "current": _usd(data.get("current")),
                "circulatingPrevDay": _optional_usd(data.get("circulatingPrevDay")),
                "circulatingPrevWeek": _optional_usd(data.get("circulatingPrevWeek")),
                "circulatingPrevMonth": _optional_usd(data.get("circulatingPrevMonth")),
            }

        price = coin.get("price")
        out.append(
            StablecoinMetrics(
                id=int(coin.get("id", 0)),
                name=str(coin.get("name", "")),
                symbol=str(coin.get("symbol", "")),
                peg_type=str(coin.get("pegType", "")),
                peg_mechanism=str(coin.get("pegMechanism", "")),
                total_circulating=current,
                change_24h=pct_change(current, prev_day),
                change_7d=pct_change(current, prev_week),
                change_30d=pct_change(current, prev_month),
                dominance=current / total_market_cap * 100 if total_market_cap > 0 else 0.0,
                price=float(price) if price is not None else None,
                gecko_id=coin.get("gecko_id"),
                chains=tuple(coin.get("chains") or ()),
                circulating=circulating,
            )
        )
    return sorted(out, key=lambda c: c.total_circulating, reverse=True)


def chain_metrics(payload: Mapping[str, Any], top_n: int = 5) -> list[ChainMetrics]:
    """Per-chain stablecoin supply built from each asset's chain breakdown."""

    totals: dict[str, dict[str, Any]] = {}
    for coin in payload.get("peggedAssets") or []:
        for chain, data in (coin.get("chainCirculating") or {}).items():
            current = _usd(data.get("current"))
            if current <= 0:
                continue
            entry = totals.setdefault(chain, {"total": 0.0, "prev_day": 0.0, "prev_week": 0.0, "coins": []})
            entry["total"] += current
            entry["prev_day"] += _usd(data.get("circulatingPrevDay")) or current
            entry["prev_week"] += _usd(data.get("circulatingPrevWeek")) or current
            entry["coins"].append(
                {"name": str(coin.get("name", "")), "symbol": str(coin.get("symbol", "")), "amount": current}
            )

    out = [
        ChainMetrics(
            name=chain,
            total_stablecoin_usd=entry["total"],
            stablecoin_count=len(entry["coins"]),
            change_24h=pct_change(entry["total"], entry["prev_day"]),
            change_7d=pct_change(entry["total"], entry["prev_week"]),
            top_stablecoins=tuple(
                sorted(entry["coins"], key=lambda c: c["amount"], reverse=True)[:top_n]
            ),
        )
        for chain, entry in totals.items()
    ]
    return sorted(out, key=lambda c: c.total_stablecoin_usd, reverse=True)


def historical_chart(payload: Iterable[Mapping[str, Any]]) -> list[dict[str, float]]:
    """``[{date, value}]`` points with ``date`` in epoch milliseconds."""

    return [
        {"date": int(item.get("date", 0)) * 1000, "value": _usd(item.get("totalCirculatingUSD"))}
        for item in payload
    ]


def _backed_out(current: float, change: float) -> float:
    """Previous-period supply implied by ``current`` and a percent ``change``.

    A change of -100% or below leaves nothing to scale from, so the previous
    value is treated as unknown and taken to equal ``current``.
    """

    if not change or change <= -100:
        return current
    return current * 100 / (100 + change)


def total_metrics(coins: Sequence[StablecoinMetrics]) -> dict[str, float | int]:
    """Market-wide totals; previous totals are backed out of each asset's change."""

    market_cap = sum(c.total_circulating for c in coins)
    prev_day = sum(_backed_out(c.total_circulating, c.change_24h) for c in coins)
    prev_week = sum(_backed_out(c.total_circulating, c.change_7d) for c in coins)
    return {
        "totalMarketCap": market_cap,
        "change24h": pct_change(market_cap, prev_day),
        "change7d": pct_change(market_cap, prev_week),
        "stablecoinCount": len(coins),
        "chainCount": len({chain for c in coins for chain in c.chains}),
    }


def daily_totals(
    rows: Iterable[Mapping[str, Any]],
    value_cols: Sequence[str],
    date_col: str = "date",
) -> pd.DataFrame:
    """Sum per-chain rows into one row per date."""

    df = pd.DataFrame(list(rows))
    if df.empty:
        return pd.DataFrame(columns=list(value_cols))
    df[date_col] = pd.to_datetime(df[date_col], utc=True)
    return df.groupby(date_col)[list(value_cols)].sum().sort_index()


def dominance_table(coins: Sequence[StablecoinMetrics], top_n: int = 8) -> pd.DataFrame:
    """Top ``top_n`` assets by dominance with the remainder folded into ``Others``."""

    df = pd.DataFrame(
        [{"symbol": c.symbol, "dominance": c.dominance, "supply": c.total_circulating} for c in coins]
    )
    if df.empty:
        return df
    df = df.sort_values("supply", ascending=False).reset_index(drop=True)
    head, tail = df.iloc[:top_n], df.iloc[top_n:]
    if not tail.empty:
        others = pd.DataFrame(
            [{"symbol": "Others", "dominance": tail["dominance"].sum(), "supply": tail["supply"].sum()}]
        )
        head = pd.concat([head, others], ignore_index=True)
    return head


# -----------------
# Bridges
# -----------------


def bridge_metrics(payload: Mapping[str, Any]) -> list[BridgeMetrics]:
    """Per-bridge volumes with day-over-day and week-pace changes."""

    out: list[BridgeMetrics] = []
    for bridge in payload.get("bridges") or []:
        last_daily = float(bridge.get("lastDailyVolume") or 0.0)
        day_before = float(bridge.get("dayBeforeLastVolume") or 0.0)
        weekly = float(bridge.get("weeklyVolume") or 0.0)
        monthly = float(bridge.get("monthlyVolume") or 0.0)
        change_7d = 0.0
        if weekly > 0 and last_daily > 0:
            # last day annualised to a week against the trailing week
            change_7d = (last_daily * 7 - weekly) / weekly * 100
        out.append(
            BridgeMetrics(
                id=int(bridge.get("id", 0)),
                name=str(bridge.get("name", "")),
                display_name=str(bridge.get("displayName") or bridge.get("name", "")),
                last_daily_volume=last_daily,
                day_before_last_volume=day_before,
                weekly_volume=weekly,
                monthly_volume=monthly,
                change_24h=pct_change(last_daily, day_before),
                change_7d=change_7d,
                chains=tuple(bridge.get("chains") or ()),
                destination_chain=bridge.get("destinationChain"),
            )
        )
    return sorted(out, key=lambda b: b.last_daily_volume, reverse=True)


def bridge_totals(bridges: Sequence[BridgeMetrics]) -> dict[str, float | int]:
    daily = sum(b.last_daily_volume for b in bridges)
    prev_day = sum(b.day_before_last_volume for b in bridges)
    return {
        "totalDailyVolume": daily,
        "totalWeeklyVolume": sum(b.weekly_volume for b in bridges),
        "totalMonthlyVolume": sum(b.monthly_volume for b in bridges),
        "change24h": pct_change(daily, prev_day),
        "bridgeCount": len(bridges),
        "activeChains": len({chain for b in bridges for chain in b.chains}),
    }


def bridge_volume_history(payload: Any) -> list[dict[str, Any]]:
    """Flatten a chain's bridge volume into ``date``-stamped rows (epoch ms)."""

    if isinstance(payload, Mapping):
        items = [{"date": int(k), **dict(v)} for k, v in payload.items()]
    else:
        items = [dict(v) for v in payload]
    return [{**item, "date": int(item.get("date", 0)) * 1000} for item in items]


def _bridges(payload: Mapping[str, Any]) -> list[tuple[list[str], float]]:
    out = []
    for bridge in payload.get("bridges") or []:
        volume = float(bridge.get("lastDailyVolume") or 0.0)
        if volume > 0:
            out.append((list(bridge.get("chains") or []), volume))
    return out


def bridge_flow_data(
    payload: Mapping[str, Any],
    *,
    max_sources: int = 6,
    max_targets: int = 10,
    max_links: int = 30,
) -> FlowData:
    """Directional settlement-chain to rollup flows for a Sankey diagram.

    Each bridge's daily volume is split evenly over its (L1, L2) chain pairs.
    Bridges without such a pair route their volume from Ethereum to the other
    chains when Ethereum is among them.
    """

    chain_volumes: dict[str, float] = defaultdict(float)
    flows: dict[tuple[str, str], float] = defaultdict(float)

    for chains, volume in _bridges(payload):
        per_chain = volume / max(len(chains), 1)
        for chain in chains:
            chain_volumes[chain] += per_chain

        sources = [c for c in chains if c in L1_CHAINS]
        targets = [c for c in chains if c in L2_CHAINS]
        if sources and targets:
            per_pair = volume / (len(sources) * len(targets))
            for src in sources:
                for dst in targets:
                    flows[(src, dst)] += per_pair
        elif "Ethereum" in chains:
            others = [c for c in chains if c != "Ethereum"]
            per_target = volume / max(len(others), 1)
            for dst in others:
                flows[("Ethereum", dst)] += per_target

    ranked = sorted(chain_volumes.items(), key=lambda kv: kv[1], reverse=True)
    source_nodes = [
        FlowNode(id=f"source-{c}", name=c, color=chain_color(c), value=v)
        for c, v in ranked
        if c in L1_CHAINS
    ][:max_sources]
    target_nodes = [
        FlowNode(id=f"target-{c}", name=c, color=chain_color(c), value=v)
        for c, v in ranked
        if c in L2_CHAINS or c not in L1_CHAINS
    ][:max_targets]
    node_ids = {n.id for n in source_nodes + target_nodes}

    links = [
        FlowLink(source=f"source-{src}", target=f"target-{dst}", value=value, color=chain_color(src))
        for (src, dst), value in flows.items()
        if f"source-{src}" in node_ids and f"target-{dst}" in node_ids and value > MIN_FLOW_LINK_USD
    ]
    links.sort(key=lambda link: link.value, reverse=True)
    return FlowData(nodes=tuple(source_nodes + target_nodes), links=tuple(links[:max_links]))


def network_graph_data(
    payload: Mapping[str, Any],
    *,
    max_nodes: int = 15,
    max_links: int = 40,
) -> NetworkData:
    """Undirected chain graph; each bridge spreads its volume over all chain pairs."""

    chain_volumes: dict[str, float] = defaultdict(float)
    edges: dict[tuple[str, str], float] = defaultdict(float)

    for chains, volume in _bridges(payload):
        if len(chains) < 2:
            continue
        for chain in chains:
            chain_volumes[chain] += volume / len(chains)
        pairs = list(combinations(chains, 2))
        for a, b in pairs:
            edges[tuple(sorted((a, b)))] += volume / len(pairs)  # type: ignore[index]

    top = sorted(chain_volumes.items(), key=lambda kv: kv[1], reverse=True)[:max_nodes]
    nodes = [NetworkNode(id=c, name=c, value=v, color=chain_color(c)) for c, v in top]
    node_ids = {n.id for n in nodes}
    links = [
        NetworkLink(source=a, target=b, value=value)
        for (a, b), value in edges.items()
        if a in node_ids and b in node_ids and value > MIN_NETWORK_LINK_USD
    ]
    links.sort(key=lambda link: link.value, reverse=True)
    return NetworkData(nodes=tuple(nodes), links=tuple(links[:max_links]))


__all__ = [
    "bridge_flow_data",
    "bridge_metrics",
    "bridge_totals",
    "bridge_volume_history",
    "chain_color",
    "chain_metrics",
    "daily_totals",
    "dominance_table",
    "historical_chart",
    "network_graph_data",
    "pct_change",
    "stablecoin_metrics",
    "total_metrics",
]
