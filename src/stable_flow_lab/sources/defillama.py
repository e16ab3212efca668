"""DefiLlama stablecoin and bridge API adapter."""

from __future__ import annotations

import json
import logging
import urllib.parse
from pathlib import Path
from typing import Any

from .http import DEFAULT_TIMEOUT, DEFAULT_TTL, TTLCache, fetch_json

logger = logging.getLogger(__name__)


class DefiLlamaClient:
    """HTTP client for https://stablecoins.llama.fi and https://bridges.llama.fi.

    Responses are memoised in memory for ``ttl`` seconds.  When ``cache_dir``
    is given, a ``<name>.json`` snapshot in that directory is served instead of
    calling the network, and fresh responses are written back to it.
    """

    STABLECOINS_URL = "https://stablecoins.llama.fi"
    BRIDGES_URL = "https://bridges.llama.fi"

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        ttl: float = DEFAULT_TTL,
        cache_dir: str | None = None,
    ) -> None:
        self.timeout = timeout
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self._cache = TTLCache(ttl)

    def _get_json(self, name: str, url: str) -> Any:
        if self.cache_dir:
            path = self.cache_dir / f"{name}.json"
            if path.exists():
                with path.open() as f:
                    return json.load(f)

        def _load() -> Any:
            logger.debug("GET %s", url)
            return fetch_json(url, timeout=self.timeout)

        data = self._cache.get_or_load(url, _load)
        if self.cache_dir:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with (self.cache_dir / f"{name}.json").open("w") as f:
                json.dump(data, f)
        return data

    # -----------------
    # Stablecoins
    # -----------------

    def stablecoins(self, include_prices: bool = True) -> dict[str, Any]:
        query = "?includePrices=true" if include_prices else ""
        return self._get_json("stablecoins", f"{self.STABLECOINS_URL}/stablecoins{query}")

    def stablecoin(self, stablecoin_id: int) -> dict[str, Any]:
        return self._get_json(
            f"stablecoin_{stablecoin_id}", f"{self.STABLECOINS_URL}/stablecoin/{stablecoin_id}"
        )

    def stablecoin_chains(self) -> list[dict[str, Any]]:
        return self._get_json("stablecoinchains", f"{self.STABLECOINS_URL}/stablecoinchains")

    def stablecoin_charts(self, chain: str | None = None) -> list[dict[str, Any]]:
        target = urllib.parse.quote(chain) if chain else "all"
        return self._get_json(
            f"stablecoincharts_{chain or 'all'}", f"{self.STABLECOINS_URL}/stablecoincharts/{target}"
        )

    def stablecoin_prices(self) -> list[dict[str, Any]]:
        return self._get_json("stablecoinprices", f"{self.STABLECOINS_URL}/stablecoinprices")

    # -----------------
    # Bridges
    # -----------------

    def bridges(self, include_chains: bool = True) -> dict[str, Any]:
        query = "?includeChains=true" if include_chains else ""
        return self._get_json("bridges", f"{self.BRIDGES_URL}/bridges{query}")

    def bridge(self, bridge_id: int) -> dict[str, Any]:
        return self._get_json(f"bridge_{bridge_id}", f"{self.BRIDGES_URL}/bridge/{bridge_id}")

    def bridge_volume(self, chain: str) -> Any:
        return self._get_json(
            f"bridgevolume_{chain}", f"{self.BRIDGES_URL}/bridgevolume/{urllib.parse.quote(chain)}"
        )

    def bridge_day_stats(self, timestamp: int, chain: str) -> dict[str, Any]:
        return self._get_json(
            f"bridgedaystats_{timestamp}_{chain}",
            f"{self.BRIDGES_URL}/bridgedaystats/{timestamp}/{urllib.parse.quote(chain)}",
        )

    def bridge_transactions(
        self,
        bridge_id: int,
        start_timestamp: int | None = None,
        end_timestamp: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, int] = {}
        if start_timestamp:
            params["starttimestamp"] = start_timestamp
        if end_timestamp:
            params["endtimestamp"] = end_timestamp
        url = f"{self.BRIDGES_URL}/transactions/{bridge_id}"
        if params:
            url += f"?{urllib.parse.urlencode(params)}"
        name = "_".join(["transactions", str(bridge_id), *(str(v) for v in params.values())])
        return self._get_json(name, url)

    def large_transactions(self, chain: str) -> list[dict[str, Any]]:
        return self._get_json(
            f"largetransactions_{chain}",
            f"{self.BRIDGES_URL}/largetransactions/{urllib.parse.quote(chain)}",
        )


__all__ = ["DefiLlamaClient"]
