"""File-first CSV outputs for a dashboard snapshot."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from .core import AdjustedVolumeMetrics, BridgeMetrics, ChainMetrics, StablecoinRepository


def _ensure_outdir(outdir: str | Path) -> Path:
    p = Path(outdir)
    p.mkdir(parents=True, exist_ok=True)
    return p


def hhi(shares: pd.Series) -> float:
    """Herfindahl-Hirschman index of a series of non-negative amounts.

    Returns ``nan`` for an empty or all-zero series.
    """

    values = pd.to_numeric(shares, errors="coerce").dropna()
    total = float(values.sum())
    if values.empty or total <= 0.0:
        return float("nan")
    return float(((values / total) ** 2).sum())


def snapshot_report(
    repo: StablecoinRepository,
    outdir: str | Path,
    *,
    chains: Sequence[ChainMetrics] = (),
    bridges: Sequence[BridgeMetrics] = (),
    volume: AdjustedVolumeMetrics | None = None,
    top_n: int = 20,
) -> dict[str, Path]:
    """Write the snapshot tables and return a mapping of label to CSV path.

    Writes the following CSVs (skipping any whose input is empty):
      - stablecoins.csv: every asset with supply, changes and dominance
      - topN.csv: the ``top_n`` assets by circulating supply
      - by_peg_type.csv: supply aggregated by peg type
      - chains.csv: per-chain supply and changes
      - bridges.csv: per-bridge volumes and changes
      - volume_breakdown.csv: the adjusted-volume category split
      - concentration.csv: HHI of supply across assets and across chains
    """
    out = _ensure_outdir(outdir)
    paths: dict[str, Path] = {}

    df = repo.to_dataframe()
    if not df.empty:
        paths["stablecoins"] = out / "stablecoins.csv"
        df.to_csv(paths["stablecoins"], index=False)

        paths["topN"] = out / "topN.csv"
        df.nlargest(top_n, "totalCirculating").to_csv(paths["topN"], index=False)

        by_peg = (
            df.groupby("pegType")
            .agg(assets=("symbol", "count"), supply=("totalCirculating", "sum"))
            .reset_index()
            .sort_values("supply", ascending=False)
        )
        paths["by_peg_type"] = out / "by_peg_type.csv"
        by_peg.to_csv(paths["by_peg_type"], index=False)

    chain_df = pd.DataFrame([c.to_dict() for c in chains])
    if not chain_df.empty:
        chain_df["topStablecoins"] = [
            ",".join(s["symbol"] for s in c.top_stablecoins) for c in chains
        ]
        paths["chains"] = out / "chains.csv"
        chain_df.to_csv(paths["chains"], index=False)

    if bridges:
        bridge_df = pd.DataFrame([b.to_dict() for b in bridges])
        bridge_df["chains"] = [",".join(b.chains) for b in bridges]
        paths["bridges"] = out / "bridges.csv"
        bridge_df.to_csv(paths["bridges"], index=False)

    if volume is not None:
        vol_df = pd.DataFrame([e.to_dict() for e in volume.breakdown])
        vol_df["source"] = volume.source
        paths["volume_breakdown"] = out / "volume_breakdown.csv"
        vol_df.to_csv(paths["volume_breakdown"], index=False)

    concentration = []
    if not df.empty:
        concentration.append({"dimension": "stablecoin", "hhi": hhi(df["totalCirculating"])})
    if not chain_df.empty:
        concentration.append({"dimension": "chain", "hhi": hhi(chain_df["totalStablecoinUsd"])})
    if concentration:
        paths["concentration"] = out / "concentration.csv"
        pd.DataFrame(concentration).to_csv(paths["concentration"], index=False)

    return paths


__all__ = ["hhi", "snapshot_report"]
