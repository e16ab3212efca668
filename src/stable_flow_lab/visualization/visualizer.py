"""Matplotlib-based chart helpers for StableFlowLab."""

from __future__ import annotations

import pandas as pd

from ..aggregation import chain_color
from ..core import AdjustedVolumeMetrics


class Visualizer:
    """Collection of static helpers that turn aggregated data into charts."""

    @staticmethod
    def _plt():
        try:
            import matplotlib.pyplot as plt
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(
                "matplotlib is required for visualization. Install via pip."
            ) from exc
        return plt

    @staticmethod
    def _finish(plt, save_path: str | None, show: bool) -> None:
        plt.tight_layout()
        if save_path:
            plt.savefig(save_path, bbox_inches="tight")
        if show:
            plt.show()

    @staticmethod
    def breakdown_frame(metrics: AdjustedVolumeMetrics) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {"category": e.category, "volume": e.volume, "percentage": e.percentage}
                for e in metrics.breakdown
            ]
        )

    @staticmethod
    def bar_volume_breakdown(
        metrics: AdjustedVolumeMetrics,
        title: str = "Stablecoin Transfer Volume by Activity",
        *,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        """Bar chart of breakdown volumes in billions of USD."""
        df = Visualizer.breakdown_frame(metrics)
        if df.empty:
            return
        plt = Visualizer._plt()
        plt.figure(figsize=(10, 6))
        plt.bar(df["category"], df["volume"] / 1e9)
        plt.title(f"{title} ({metrics.source})")
        plt.ylabel("Volume (USD bn)")
        plt.xticks(rotation=45, ha="right")
        Visualizer._finish(plt, save_path, show)

    @staticmethod
    def pie_dominance(
        df: pd.DataFrame,
        title: str = "Stablecoin Market Share",
        label_col: str = "symbol",
        value_col: str = "dominance",
        *,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        if df.empty:
            return
        plt = Visualizer._plt()
        plt.figure(figsize=(8, 8))
        plt.pie(df[value_col], labels=df[label_col], autopct="%1.1f%%")
        plt.title(title)
        Visualizer._finish(plt, save_path, show)

    @staticmethod
    def bar_chain_supply(
        df: pd.DataFrame,
        title: str = "Stablecoin Supply by Chain",
        x_col: str = "name",
        y_col: str = "totalStablecoinUsd",
        top_n: int = 10,
        *,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        """Bar chart of the ``top_n`` chains, colored by chain brand color."""
        if df.empty:
            return
        top = df.nlargest(top_n, y_col)
        plt = Visualizer._plt()
        plt.figure(figsize=(10, 6))
        plt.bar(
            top[x_col],
            top[y_col] / 1e9,
            color=[chain_color(str(c)) for c in top[x_col]],
        )
        plt.title(title)
        plt.ylabel("Supply (USD bn)")
        plt.xticks(rotation=45, ha="right")
        Visualizer._finish(plt, save_path, show)

    @staticmethod
    def line_chart(
        data: pd.DataFrame | pd.Series,
        *,
        title: str,
        ylabel: str,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        """Plot time-series data as a line chart."""
        df = data.to_frame() if isinstance(data, pd.Series) else data
        if df.empty:
            return
        plt = Visualizer._plt()
        plt.figure(figsize=(10, 6))
        for col in df.columns:
            plt.plot(df.index, df[col], label=col)
        if len(df.columns) > 1:
            plt.legend()
        plt.xlabel("Date")
        plt.ylabel(ylabel)
        plt.title(title)
        Visualizer._finish(plt, save_path, show)

    @staticmethod
    def line_market_cap(
        points: list[dict[str, float]],
        title: str = "Total Stablecoin Market Cap",
        *,
        save_path: str | None = None,
        show: bool = True,
    ) -> None:
        """Plot ``[{date(ms), value}]`` points as returned by ``historical_chart``."""
        if not points:
            return
        df = pd.DataFrame(points)
        series = pd.Series(
            df["value"].to_numpy() / 1e9,
            index=pd.to_datetime(df["date"], unit="ms", utc=True),
            name="Market cap",
        )
        Visualizer.line_chart(
            series, title=title, ylabel="USD bn", save_path=save_path, show=show
        )


__all__ = ["Visualizer"]
