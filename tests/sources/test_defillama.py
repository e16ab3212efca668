from __future__ import annotations

import json
from pathlib import Path

import pytest

from stable_flow_lab.sources import DefiLlamaClient, UpstreamError

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


@pytest.fixture()
def cached_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> DefiLlamaClient:
    (tmp_path / "stablecoins.json").write_bytes((FIXTURES / "stablecoins.json").read_bytes())
    (tmp_path / "bridges.json").write_bytes((FIXTURES / "bridges.json").read_bytes())

    def _unexpected_network(*_args: object, **_kwargs: object) -> None:
        raise AssertionError("network access should use cached response")

    monkeypatch.setattr(
        "stable_flow_lab.sources.http.urllib.request.urlopen",
        _unexpected_network,
    )
    return DefiLlamaClient(cache_dir=str(tmp_path))


def test_cache_dir_snapshots_are_served(cached_client: DefiLlamaClient) -> None:
    assert [c["symbol"] for c in cached_client.stablecoins()["peggedAssets"]] == [
        "USDT",
        "USDC",
        "EURC",
    ]
    assert len(cached_client.bridges()["bridges"]) == 3


def test_urls_and_in_memory_cache(fake_urlopen) -> None:
    fake = fake_urlopen({"peggedAssets": []})
    client = DefiLlamaClient(timeout=7.0)

    client.stablecoins()
    client.stablecoins()
    client.stablecoin_charts("zkSync Era")
    client.bridge_transactions(5, start_timestamp=100)

    urls = [r.full_url for r in fake.requests]
    assert urls == [
        "https://stablecoins.llama.fi/stablecoins?includePrices=true",
        "https://stablecoins.llama.fi/stablecoincharts/zkSync%20Era",
        "https://bridges.llama.fi/transactions/5?starttimestamp=100",
    ]
    assert set(fake.timeouts) == {7.0}


def test_fresh_response_written_to_cache_dir(fake_urlopen, tmp_path: Path) -> None:
    fake_urlopen([{"date": "1700000000", "totalCirculatingUSD": {"peggedUSD": 5}}])
    DefiLlamaClient(cache_dir=str(tmp_path)).stablecoin_charts()
    saved = json.loads((tmp_path / "stablecoincharts_all.json").read_text())
    assert saved[0]["totalCirculatingUSD"]["peggedUSD"] == 5


def test_upstream_errors_propagate(fake_urlopen) -> None:
    fake_urlopen(TimeoutError("slow"))
    with pytest.raises(UpstreamError, match="timeout"):
        DefiLlamaClient().bridges()


def test_bridge_endpoint_urls(fake_urlopen) -> None:
    fake = fake_urlopen({})
    client = DefiLlamaClient()

    client.stablecoin(1)
    client.stablecoin_chains()
    client.stablecoin_prices()
    client.bridge(10)
    client.bridge_volume("Ethereum")
    client.bridge_day_stats(1700000000, "Arbitrum")
    client.large_transactions("BSC")

    assert [r.full_url for r in fake.requests] == [
        "https://stablecoins.llama.fi/stablecoin/1",
        "https://stablecoins.llama.fi/stablecoinchains",
        "https://stablecoins.llama.fi/stablecoinprices",
        "https://bridges.llama.fi/bridge/10",
        "https://bridges.llama.fi/bridgevolume/Ethereum",
        "https://bridges.llama.fi/bridgedaystats/1700000000/Arbitrum",
        "https://bridges.llama.fi/largetransactions/BSC",
    ]
