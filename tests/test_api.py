from __future__ import annotations

from typing import Any

import pytest
from conftest import FakeResponse
from fastapi.testclient import TestClient

from stable_flow_lab.api import create_app
from stable_flow_lab.config import Settings
from stable_flow_lab.core import ProviderVolumeBreakdown
from stable_flow_lab.sources import ArtemisClient, DuneSource, UpstreamError
from stable_flow_lab.volume import VolumeAdjustmentEngine


class FakeDefiLlama:
    def __init__(self, stablecoins: Any, bridges: Any) -> None:
        self._stablecoins = stablecoins
        self._bridges = bridges
        self.calls: list[str] = []

    def stablecoins(self) -> Any:
        self.calls.append("stablecoins")
        return self._stablecoins

    def stablecoin(self, stablecoin_id: int) -> Any:
        return {"id": stablecoin_id, "tokens": [{"date": 1700000000}]}

    def stablecoin_charts(self, chain: str | None = None) -> Any:
        return [{"date": "1700000000", "totalCirculatingUSD": {"peggedUSD": 7}}]

    def bridges(self) -> Any:
        return self._bridges

    def bridge_volume(self, chain: str) -> Any:
        return [{"date": "1700000000", "depositUSD": 3}]


class DownDefiLlama:
    def stablecoins(self) -> Any:
        raise UpstreamError("HTTP error! status: 503", status=503)

    bridges = stablecoins


class CountingEngine(VolumeAdjustmentEngine):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.calls: list[float] = []

    def calculate_adjusted_volume(self, raw_volume: float):
        self.calls.append(raw_volume)
        return super().calculate_adjusted_volume(raw_volume)


class StubProvider:
    def fetch_volume_breakdown(self, days: int = 1) -> ProviderVolumeBreakdown:
        return ProviderVolumeBreakdown("2026-10-17", 500.0, 325.0, 125.0)


@pytest.fixture()
def engine() -> CountingEngine:
    return CountingEngine()


@pytest.fixture()
def llama(fixture_json) -> FakeDefiLlama:
    return FakeDefiLlama(fixture_json("stablecoins.json"), fixture_json("bridges.json"))


@pytest.fixture()
def client(engine: CountingEngine, llama: FakeDefiLlama) -> TestClient:
    app = create_app(Settings(), engine=engine, dune=DuneSource(seed=3), defillama=llama)
    return TestClient(app)


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "healthy", "liveVolumeData": False}


def test_adjusted_volume_static(client: TestClient) -> None:
    res = client.get("/api/adjusted-volume", params={"rawVolume": "1000"})
    assert res.status_code == 200
    body = res.json()
    assert body["rawVolume"] == 1000.0
    assert body["adjustedVolume"] == pytest.approx(420.0)
    assert body["source"] == "estimated"
    assert len(body["breakdown"]) == 7


def test_adjusted_volume_live(llama: FakeDefiLlama) -> None:
    app = create_app(Settings(), engine=VolumeAdjustmentEngine(StubProvider()), defillama=llama)
    body = TestClient(app).get("/api/adjusted-volume?rawVolume=1000").json()
    assert body["source"] == "artemis"
    assert body["paymentsVolume"] == pytest.approx(570.0)


@pytest.mark.parametrize("query", ["", "?rawVolume=", "?rawVolume=0", "?rawVolume=-3", "?rawVolume=abc", "?rawVolume=inf"])
def test_adjusted_volume_rejects_bad_input(client: TestClient, engine: CountingEngine, query: str) -> None:
    res = client.get(f"/api/adjusted-volume{query}")
    assert res.status_code == 400
    assert "rawVolume" in res.json()["error"]
    assert engine.calls == []


def test_adjusted_volume_is_cached(client: TestClient, engine: CountingEngine) -> None:
    client.get("/api/adjusted-volume?rawVolume=5")
    client.get("/api/adjusted-volume?rawVolume=5")
    assert engine.calls == [5.0]


def test_adjusted_volume_unexpected_failure(llama: FakeDefiLlama) -> None:
    class Broken(VolumeAdjustmentEngine):
        def calculate_adjusted_volume(self, raw_volume: float):
            raise RuntimeError("bug")

    res = TestClient(create_app(Settings(), engine=Broken(), defillama=llama)).get(
        "/api/adjusted-volume?rawVolume=10"
    )
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to calculate adjusted volume"}


def test_dune_endpoints(client: TestClient) -> None:
    transfers = client.get("/api/dune/whale-transfers", params={"minAmount": 2_000_000, "days": 2}).json()
    assert len(transfers) == 50
    assert all(t["amountUsd"] >= 2_000_000 for t in transfers)

    holders = client.get("/api/dune/top-holders?stablecoin=USDC&limit=5").json()
    assert len(holders) == 5
    assert {"address", "percentOfSupply", "lastActivity"} <= set(holders[0])

    summary = client.get("/api/dune/summary").json()
    assert summary["largeTransfers24h"] == 50


def test_dune_errors(client: TestClient) -> None:
    assert client.get("/api/dune/nope").status_code == 404
    assert client.get("/api/dune/nope").json() == {"error": "Unknown endpoint"}
    assert client.get("/api/dune/top-holders").status_code == 400
    assert client.get("/api/dune/mint-burn?days=0").status_code == 400


def test_artemis_metrics_falls_back_to_mock(client: TestClient) -> None:
    rows = client.get("/api/artemis/metrics?symbol=USDT&chain=tron&days=2").json()
    assert len(rows) == 2
    assert rows[0]["symbol"] == "USDT"
    assert rows[0]["artemisTransferVolume"] == pytest.approx(rows[0]["transferVolume"] * 0.65)


def test_stablecoin_routes(client: TestClient, llama: FakeDefiLlama) -> None:
    coins = client.get("/api/stablecoins").json()
    assert [c["symbol"] for c in coins] == ["USDT", "USDC", "EURC"]
    assert coins[0]["dominance"] == pytest.approx(60.0)
    client.get("/api/stablecoins")
    assert llama.calls == ["stablecoins"]

    assert client.get("/api/stablecoins/1").json() == [{"date": 1700000000}]
    assert client.get("/api/stablecoins/abc").status_code == 400

    chains = client.get("/api/chains").json()
    assert chains[0]["name"] == "Ethereum"
    assert chains[0]["totalStablecoinUsd"] == 650.0

    assert client.get("/api/charts").json() == [{"date": 1700000000000, "value": 7.0}]
    assert client.get("/api/metrics").json()["totalMarketCap"] == 1000.0


def test_bridge_routes(client: TestClient) -> None:
    assert [b["name"] for b in client.get("/api/bridges").json()] == ["stargate", "hop", "portal"]
    assert client.get("/api/bridges/metrics").json()["bridgeCount"] == 3
    flows = client.get("/api/bridges/flows").json()
    assert flows["links"][0]["target"] == "target-Arbitrum"
    network = client.get("/api/bridges/network").json()
    assert network["nodes"][0]["id"] == "Ethereum"
    assert client.get("/api/bridges/volume/Ethereum").json() == [
        {"date": 1700000000000, "depositUSD": 3}
    ]


def test_upstream_failure_is_502(engine: CountingEngine) -> None:
    client = TestClient(create_app(Settings(), engine=engine, defillama=DownDefiLlama()))
    for path in ("/api/stablecoins", "/api/chains", "/api/bridges", "/api/bridges/flows"):
        res = client.get(path)
        assert res.status_code == 502
        assert res.json() == {"error": "Failed to fetch data"}


def test_reshaping_failure_is_logged_500(engine: CountingEngine, caplog: pytest.LogCaptureFixture) -> None:
    # chainCirculating entries must be mappings
    llama = FakeDefiLlama({"peggedAssets": [{"id": 1, "chainCirculating": {"Ethereum": 5}}]}, {})
    client = TestClient(create_app(Settings(), engine=engine, defillama=llama))
    with caplog.at_level("ERROR", logger="stable_flow_lab.api"):
        res = client.get("/api/chains")
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to fetch data"}
    assert "Error building chains" in caplog.text


def test_metrics_with_fully_redeemed_coin(engine: CountingEngine) -> None:
    payload = {
        "peggedAssets": [
            {"id": 1, "circulating": {"peggedUSD": 100}},
            {"id": 2, "circulating": {"peggedUSD": 0}, "circulatingPrevDay": {"peggedUSD": 50}},
        ]
    }
    client = TestClient(create_app(Settings(), engine=engine, defillama=FakeDefiLlama(payload, {})))
    res = client.get("/api/metrics")
    assert res.status_code == 200
    assert res.json()["totalMarketCap"] == 100.0


def test_artemis_undecodable_body_falls_back_to_mock(fake_urlopen, llama: FakeDefiLlama) -> None:
    fake_urlopen(FakeResponse(b'{"data": "\xff"}'))
    app = create_app(Settings(), engine=VolumeAdjustmentEngine(), defillama=llama, artemis=ArtemisClient("key"))
    res = TestClient(app).get("/api/artemis/metrics?symbol=USDC&chain=base&days=1")
    assert res.status_code == 200
    assert res.json()[0]["chain"] == "base"
