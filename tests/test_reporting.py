from datetime import UTC, datetime
from pathlib import Path

import pandas as pd
import pytest

from stable_flow_lab import aggregation
from stable_flow_lab.core import StablecoinRepository
from stable_flow_lab.reporting import hhi, snapshot_report
from stable_flow_lab.volume import VolumeAdjustmentEngine


def test_hhi() -> None:
    assert hhi(pd.Series([50.0, 50.0])) == pytest.approx(0.5)
    assert hhi(pd.Series([1.0])) == pytest.approx(1.0)
    assert pd.isna(hhi(pd.Series([], dtype=float)))
    assert pd.isna(hhi(pd.Series([0.0, 0.0])))


def test_snapshot_report_writes_tables(tmp_path: Path, fixture_json) -> None:
    payload = fixture_json("stablecoins.json")
    coins = aggregation.stablecoin_metrics(payload)
    chains = aggregation.chain_metrics(payload)
    bridges = aggregation.bridge_metrics(fixture_json("bridges.json"))
    volume = VolumeAdjustmentEngine(
        clock=lambda: datetime(2026, 10, 17, tzinfo=UTC)
    ).calculate_adjusted_volume(1000.0)

    paths = snapshot_report(
        StablecoinRepository(coins),
        tmp_path / "out",
        chains=chains,
        bridges=bridges,
        volume=volume,
        top_n=2,
    )

    assert set(paths) == {
        "stablecoins",
        "topN",
        "by_peg_type",
        "chains",
        "bridges",
        "volume_breakdown",
        "concentration",
    }
    assert all(p.exists() for p in paths.values())

    top = pd.read_csv(paths["topN"])
    assert list(top["symbol"]) == ["USDT", "USDC"]

    by_peg = pd.read_csv(paths["by_peg_type"])
    assert list(by_peg["pegType"]) == ["peggedUSD", "peggedEUR"]
    assert list(by_peg["supply"]) == [900.0, 100.0]

    chain_df = pd.read_csv(paths["chains"])
    assert chain_df.loc[0, "topStablecoins"] == "USDT,USDC"

    vol = pd.read_csv(paths["volume_breakdown"])
    assert vol["percentage"].sum() == pytest.approx(100.0)
    assert set(vol["source"]) == {"estimated"}

    conc = pd.read_csv(paths["concentration"]).set_index("dimension")["hhi"]
    assert conc["stablecoin"] == pytest.approx(0.36 + 0.09 + 0.01)


def test_snapshot_report_skips_empty_inputs(tmp_path: Path) -> None:
    assert snapshot_report(StablecoinRepository(), tmp_path) == {}
