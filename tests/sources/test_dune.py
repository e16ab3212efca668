from __future__ import annotations

from datetime import UTC, datetime

import pytest

from stable_flow_lab.sources import DuneClient, DuneSource, UpstreamError

NOW = datetime(2026, 10, 17, 0, 0, tzinfo=UTC)


@pytest.fixture()
def source() -> DuneSource:
    return DuneSource(seed=7, now=lambda: NOW)


def test_run_query_polls_until_complete_and_caches(fake_urlopen) -> None:
    fake = fake_urlopen(
        {"execution_id": "01H", "state": "QUERY_STATE_PENDING"},
        {"execution_id": "01H", "state": "QUERY_STATE_EXECUTING"},
        {"execution_id": "01H", "state": "QUERY_STATE_COMPLETED", "result": {"rows": [{"v": 1}]}},
    )
    sleeps: list[float] = []
    client = DuneClient("key", sleep=sleeps.append, poll_interval=0.5)

    assert client.run_query(3500004, {"days": 1}) == [{"v": 1}]
    assert client.run_query(3500004, {"days": 1}) == [{"v": 1}]

    assert len(fake.requests) == 3
    assert fake.requests[0].full_url.endswith("/query/3500004/execute")
    assert fake.requests[0].get_header("X-dune-api-key") == "key"
    assert sleeps == [0.5]


def test_failed_execution_raises(fake_urlopen) -> None:
    fake_urlopen({"execution_id": "x"}, {"state": "QUERY_STATE_FAILED"})
    with pytest.raises(UpstreamError, match="failed"):
        DuneClient("key", sleep=lambda _s: None).run_query(1)


def test_polling_times_out(fake_urlopen) -> None:
    fake_urlopen({"execution_id": "x"}, {"state": "QUERY_STATE_EXECUTING"})
    ticks = iter(range(100))
    client = DuneClient("key", sleep=lambda _s: None, clock=lambda: float(next(ticks)), max_wait=3)
    with pytest.raises(UpstreamError, match="timed out"):
        client.run_query(1)


def test_missing_key_raises() -> None:
    with pytest.raises(UpstreamError, match="DUNE_API_KEY"):
        DuneClient(None).run_query(1)


def test_seeded_source_is_reproducible() -> None:
    a = DuneSource(seed=1, now=lambda: NOW).whale_transfers()
    b = DuneSource(seed=1, now=lambda: NOW).whale_transfers()
    assert a == b


def test_whale_transfers_respect_minimum(source: DuneSource) -> None:
    transfers = source.whale_transfers(min_amount=5_000_000, days=3)
    assert len(transfers) == 50
    assert all(t.amount_usd >= 5_000_000 for t in transfers)
    assert [t.timestamp for t in transfers] == sorted((t.timestamp for t in transfers), reverse=True)


def test_peg_stability_sampled_every_four_hours(source: DuneSource) -> None:
    rows = source.peg_stability("DAI", days=1)
    assert len(rows) == 6
    assert all(abs(r.price - 1) <= 0.002 for r in rows)
    assert all(r.deviation == pytest.approx((r.price - 1) * 100) for r in rows)


def test_top_holders_cap_supply_share(source: DuneSource) -> None:
    holders = source.top_holders("USDT", limit=200)
    assert len(holders) == 50
    assert sum(h.percent_of_supply for h in holders) <= 100
    assert holders[0].balance >= holders[-1].balance


def test_activity_rows_per_day(source: DuneSource) -> None:
    assert len(source.active_addresses(days=4)) == 12
    volume = source.transfer_volume("USDC", days=2)
    assert len(volume) == 2
    assert all(v.tx_count > 0 and v.median_tx_size < v.avg_tx_size for v in volume)


def test_mint_burn_events_are_typed(source: DuneSource) -> None:
    events = source.mint_burn_events(days=10)
    assert events
    assert {e.type for e in events} <= {"mint", "burn"}
    usdt = [e for e in events if e.stablecoin == "USDT"]
    assert all(e.issuer == "Tether Treasury" for e in usdt)


def test_summary_nets_mints_and_burns(source: DuneSource) -> None:
    summary = source.summary()
    assert summary["netSupplyChange"] == summary["dailyMints"] - summary["dailyBurns"]
    assert summary["largeTransfers24h"] == 50
    assert summary["avgPegDeviation"] >= 0
