"""In-memory repositories for StableFlowLab data models."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict

import pandas as pd

from .models import ArtemisStablecoinMetrics, StablecoinMetrics


class StablecoinRepository:
    """Lightweight in-memory collection of stablecoin snapshots with pandas export."""

    def __init__(self, coins: Iterable[StablecoinMetrics] | None = None) -> None:
        self._coins: list[StablecoinMetrics] = list(coins) if coins else []

    def add(self, coin: StablecoinMetrics) -> None:
        self._coins.append(coin)

    def extend(self, items: Iterable[StablecoinMetrics]) -> None:
        self._coins.extend(items)

    def filter(
        self,
        *,
        min_market_cap: float = 0.0,
        chains: list[str] | None = None,
        symbols: list[str] | None = None,
        peg_types: list[str] | None = None,
    ) -> "StablecoinRepository":
        res: list[StablecoinMetrics] = []
        for coin in self._coins:
            if coin.total_circulating < min_market_cap:
                continue
            if chains and not set(chains).intersection(coin.chains):
                continue
            if symbols and coin.symbol.upper() not in {s.upper() for s in symbols}:
                continue
            if peg_types and coin.peg_type not in peg_types:
                continue
            res.append(coin)
        return StablecoinRepository(res)

    def total_market_cap(self) -> float:
        return sum(coin.total_circulating for coin in self._coins)

    def to_dataframe(self) -> pd.DataFrame:
        rows = []
        for coin in self._coins:
            data = coin.to_dict()
            # nested per-chain supply does not fit a flat table
            data.pop("circulating")
            data["chains"] = ",".join(coin.chains)
            rows.append(data)
        return pd.DataFrame(rows)

    def __len__(self) -> int:
        return len(self._coins)

    def __iter__(self) -> Iterator[StablecoinMetrics]:
        return iter(self._coins)


class ActivityRepository:
    """Collection of per-day, per-chain Artemis rows with pivot helpers."""

    VOLUME_COLUMNS = ("transfer_volume", "artemis_transfer_volume", "p2p_transfer_volume")

    def __init__(self, rows: Iterable[ArtemisStablecoinMetrics] | None = None) -> None:
        self._rows: list[ArtemisStablecoinMetrics] = list(rows) if rows else []

    def extend(self, rows: Iterable[ArtemisStablecoinMetrics]) -> None:
        self._rows.extend(rows)

    def to_dataframe(self) -> pd.DataFrame:
        if not self._rows:
            return pd.DataFrame()
        df = pd.DataFrame([asdict(row) for row in self._rows])
        df["date"] = pd.to_datetime(df["date"], utc=True)
        return df

    def to_timeseries(
        self, value: str = "transfer_volume", by: str = "chain"
    ) -> pd.DataFrame:
        """Pivot to one column per ``by`` value, summing rows sharing a date."""

        df = self.to_dataframe()
        if df.empty:
            return df
        return df.pivot_table(index="date", columns=by, values=value, aggfunc="sum").sort_index()

    def daily_totals(self) -> pd.DataFrame:
        """Per-date totals of the raw, filtered and P2P volume columns."""

        df = self.to_dataframe()
        if df.empty:
            return pd.DataFrame(columns=list(self.VOLUME_COLUMNS))
        return df.groupby("date")[list(self.VOLUME_COLUMNS)].sum().sort_index()

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[ArtemisStablecoinMetrics]:
        return iter(self._rows)


__all__ = ["ActivityRepository", "StablecoinRepository"]
