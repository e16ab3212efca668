"""Dune Analytics adapter and mock-backed on-chain activity endpoints."""

from __future__ import annotations

import json
import logging
import random
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from ..core import (
    ActiveAddressMetrics,
    MintBurnEvent,
    PegStabilityMetrics,
    TopHolder,
    TransferVolumeMetrics,
    WhaleTransfer,
)
from .http import DEFAULT_TIMEOUT, DEFAULT_TTL, TTLCache, UpstreamError, fetch_json

logger = logging.getLogger(__name__)

# Saved query ids; placeholders until the queries are published on Dune.
QUERY_IDS = {
    "STABLECOIN_MINTS": 3500000,
    "STABLECOIN_BURNS": 3500001,
    "WHALE_TRANSFERS": 3500002,
    "ACTIVE_ADDRESSES": 3500003,
    "TRANSFER_VOLUME": 3500004,
    "PEG_DEVIATIONS": 3500005,
    "TOP_HOLDERS": 3500006,
    "BLACKLISTED_ADDRESSES": 3500007,
}

STATE_COMPLETED = "QUERY_STATE_COMPLETED"
STATE_FAILED = "QUERY_STATE_FAILED"


class DuneClient:
    """Execute saved Dune queries and poll for their results."""

    BASE_URL = "https://api.dune.com/api/v1"

    def __init__(
        self,
        api_key: str | None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        ttl: float = DEFAULT_TTL,
        poll_interval: float = 1.0,
        max_wait: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self._sleep = sleep
        self._clock = clock
        self._cache = TTLCache(ttl)

    def _request(self, endpoint: str, *, method: str = "GET", data: Any = None) -> Any:
        if not self.api_key:
            raise UpstreamError("DUNE_API_KEY not configured")
        return fetch_json(
            f"{self.BASE_URL}{endpoint}",
            headers={"X-Dune-API-Key": self.api_key},
            data=data,
            method=method,
            timeout=self.timeout,
        )

    def execute_query(self, query_id: int, params: dict[str, Any] | None = None) -> str:
        body = {"query_parameters": params} if params else {}
        result = self._request(f"/query/{query_id}/execute", method="POST", data=body)
        return str(result["execution_id"])

    def execution_results(self, execution_id: str) -> dict[str, Any]:
        """Poll until the execution completes, fails or ``max_wait`` elapses."""

        started = self._clock()
        while self._clock() - started < self.max_wait:
            result = self._request(f"/execution/{execution_id}/results")
            state = result.get("state")
            if state == STATE_COMPLETED:
                return result
            if state == STATE_FAILED:
                raise UpstreamError(f"Query execution {execution_id} failed")
            self._sleep(self.poll_interval)
        raise UpstreamError(f"Query execution {execution_id} timed out")

    def run_query(self, query_id: int, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute ``query_id`` and return its rows, cached per parameter set."""

        key = f"query-{query_id}-{json.dumps(params or {}, sort_keys=True)}"

        def _load() -> list[dict[str, Any]]:
            execution_id = self.execute_query(query_id, params)
            result = self.execution_results(execution_id)
            return list((result.get("result") or {}).get("rows") or [])

        return self._cache.get_or_load(key, _load)


class DuneSource:
    """On-chain activity endpoints backed by synthetic data.

    The shapes match the Dune queries listed in :data:`QUERY_IDS`; until those
    are live, values are drawn from a pseudo-random generator.  Pass ``seed``
    for reproducible output.
    """

    STABLES = ("USDT", "USDC", "DAI", "USDS")
    CHAINS = ("Ethereum", "Tron", "BSC", "Solana")
    WHALE_LABELS = (
        "Binance",
        "Coinbase",
        "Jump Trading",
        "Wintermute",
        "Cumberland",
        "Unknown Wallet",
        "DeFi Protocol",
    )
    HOLDER_LABELS = (
        "Binance",
        "Coinbase Custody",
        "Jump Trading",
        "Wintermute",
        "Cumberland DRW",
        "Tether Treasury",
        "Circle Reserve",
        "MakerDAO",
        "Aave",
        "Compound",
        "Unknown Whale",
        "OKX",
        "Kraken",
        "BitFinex",
    )
    ISSUERS = {"USDT": "Tether Treasury", "USDC": "Circle"}
    TOTAL_SUPPLY = {"USDT": 140_000_000_000, "USDC": 50_000_000_000}

    def __init__(self, seed: int | None = None, *, now: Callable[[], datetime] | None = None) -> None:
        self._rng = random.Random(seed)
        self._now = now or (lambda: datetime.now(tz=UTC))

    def _hex(self, length: int) -> str:
        return "".join(self._rng.choice("0123456789abcdef") for _ in range(length))

    def mint_burn_events(self, stablecoin: str | None = None, days: int = 30) -> list[MintBurnEvent]:
        stables = (stablecoin,) if stablecoin else self.STABLES
        events: list[MintBurnEvent] = []
        for offset in range(days):
            ts = self._now() - timedelta(days=offset)
            for stable in stables:
                if self._rng.random() <= 0.3:
                    continue
                is_mint = self._rng.random() > 0.4
                amount = float(self._rng.randrange(10_000_000, 510_000_000))
                events.append(
                    MintBurnEvent(
                        timestamp=ts.isoformat(),
                        stablecoin=stable,
                        type="mint" if is_mint else "burn",
                        amount=amount,
                        amount_usd=amount,
                        chain=self._rng.choice(self.CHAINS),
                        tx_hash=f"0x{self._hex(64)}",
                        issuer=self.ISSUERS.get(stable),
                    )
                )
        return sorted(events, key=lambda e: e.timestamp, reverse=True)

    def whale_transfers(self, min_amount: float = 1_000_000, days: int = 7) -> list[WhaleTransfer]:
        transfers: list[WhaleTransfer] = []
        for _ in range(50):
            ts = self._now() - timedelta(days=self._rng.randrange(max(days, 1)))
            amount = float(self._rng.randrange(0, 50_000_000)) + min_amount
            transfers.append(
                WhaleTransfer(
                    timestamp=ts.isoformat(),
                    stablecoin=self._rng.choice(("USDT", "USDC", "DAI")),
                    from_address=f"0x{self._hex(8)}...",
                    to_address=f"0x{self._hex(8)}...",
                    amount=amount,
                    amount_usd=amount,
                    chain=self._rng.choice(("Ethereum", "Tron", "Arbitrum")),
                    tx_hash=f"0x{self._hex(64)}",
                    from_label=self._rng.choice(self.WHALE_LABELS),
                    to_label=self._rng.choice(self.WHALE_LABELS),
                )
            )
        return sorted(transfers, key=lambda t: t.timestamp, reverse=True)

    def active_addresses(
        self, stablecoin: str | None = None, days: int = 30
    ) -> list[ActiveAddressMetrics]:
        stables = (stablecoin,) if stablecoin else self.STABLES[:3]
        base_daily = {"USDT": 800_000, "USDC": 400_000}
        rows: list[ActiveAddressMetrics] = []
        for offset in range(days):
            day = (self._now() - timedelta(days=offset)).date().isoformat()
            for stable in stables:
                base = base_daily.get(stable, 50_000)
                rows.append(
                    ActiveAddressMetrics(
                        date=day,
                        stablecoin=stable,
                        daily_active=int(base * (0.9 + self._rng.random() * 0.2)),
                        weekly_active=int(base * 3 * (0.9 + self._rng.random() * 0.2)),
                        monthly_active=int(base * 8 * (0.9 + self._rng.random() * 0.2)),
                        new_addresses=int(base * 0.05 * (0.8 + self._rng.random() * 0.4)),
                    )
                )
        return rows

    def transfer_volume(
        self, stablecoin: str | None = None, days: int = 30
    ) -> list[TransferVolumeMetrics]:
        stables = (stablecoin,) if stablecoin else self.STABLES[:3]
        base_volume = {"USDT": 50_000_000_000, "USDC": 30_000_000_000}
        rows: list[TransferVolumeMetrics] = []
        for offset in range(days):
            day = (self._now() - timedelta(days=offset)).date().isoformat()
            for stable in stables:
                volume = float(int(base_volume.get(stable, 2_000_000_000) * (0.7 + self._rng.random() * 0.6)))
                tx_count = max(int(volume // 50_000), 1)
                avg = float(int(volume / tx_count))
                rows.append(
                    TransferVolumeMetrics(
                        date=day,
                        stablecoin=stable,
                        volume=volume,
                        tx_count=tx_count,
                        avg_tx_size=avg,
                        median_tx_size=float(int(volume / tx_count * 0.3)),
                    )
                )
        return rows

    def peg_stability(
        self, stablecoin: str | None = None, days: int = 30
    ) -> list[PegStabilityMetrics]:
        stables = (stablecoin,) if stablecoin else self.STABLES
        rows: list[PegStabilityMetrics] = []
        # one observation every four hours
        for hours in range(0, days * 24, 4):
            ts = (self._now() - timedelta(hours=hours)).isoformat()
            for stable in stables:
                band = 0.002 if stable == "DAI" else 0.0005
                price = 1 + (self._rng.random() - 0.5) * band * 2
                rows.append(
                    PegStabilityMetrics(
                        timestamp=ts,
                        stablecoin=stable,
                        price=price,
                        deviation=(price - 1) * 100,
                        source="CoinGecko",
                    )
                )
        return sorted(rows, key=lambda r: r.timestamp, reverse=True)

    def top_holders(self, stablecoin: str, limit: int = 100) -> list[TopHolder]:
        total_supply = self.TOTAL_SUPPLY.get(stablecoin.upper(), 5_000_000_000)
        remaining = 100.0
        holders: list[TopHolder] = []
        for i in range(min(limit, 50)):
            share = self._rng.random() * 5 + 2 if i < 5 else self._rng.random() * 2
            share = min(share, remaining)
            remaining -= share
            balance = float(int(total_supply * share / 100))
            last_seen = self._now() - timedelta(seconds=self._rng.random() * 7 * 24 * 3600)
            holders.append(
                TopHolder(
                    address=f"0x{self._hex(8)}...{self._hex(4)}",
                    balance=balance,
                    balance_usd=balance,
                    percent_of_supply=share,
                    stablecoin=stablecoin,
                    chain="Ethereum",
                    last_activity=last_seen.isoformat(),
                    label=self.HOLDER_LABELS[i] if i < len(self.HOLDER_LABELS) else None,
                )
            )
        return sorted(holders, key=lambda h: h.balance, reverse=True)

    def summary(self) -> dict[str, float | int]:
        """One-day roll-up across every endpoint."""

        mint_burn = self.mint_burn_events(days=1)
        whales = self.whale_transfers(1_000_000, 1)
        addresses = self.active_addresses(days=1)
        volume = self.transfer_volume(days=1)
        peg = self.peg_stability(days=1)

        mints = sum(e.amount_usd for e in mint_burn if e.type == "mint")
        burns = sum(e.amount_usd for e in mint_burn if e.type == "burn")
        return {
            "totalDailyVolume": sum(v.volume for v in volume),
            "dailyActiveAddresses": sum(a.daily_active for a in addresses),
            "dailyMints": mints,
            "dailyBurns": burns,
            "netSupplyChange": mints - burns,
            "largeTransfers24h": len(whales),
            "avgPegDeviation": (
                sum(abs(p.deviation) for p in peg) / len(peg) if peg else 0.0
            ),
        }


__all__ = ["DuneClient", "DuneSource", "QUERY_IDS"]
