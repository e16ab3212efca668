"""FastAPI application exposing the dashboard data endpoints.

Run with ``uvicorn stable_flow_lab.api:app``.  Every error response carries a
``{"error": <message>}`` body.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import aggregation
from .config import Settings, load_settings
from .sources import ArtemisClient, DefiLlamaClient, DuneSource, MockArtemisSource, TTLCache, UpstreamError
from .volume import VolumeAdjustmentEngine

logger = logging.getLogger(__name__)


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


def _parse_raw_volume(value: str | None) -> float | None:
    """Positive finite float from the query string, else ``None``."""

    if not value:
        return None
    try:
        raw = float(value)
    except ValueError:
        return None
    if not math.isfinite(raw) or raw <= 0:
        return None
    return raw


def create_app(
    settings: Settings | None = None,
    *,
    engine: VolumeAdjustmentEngine | None = None,
    dune: DuneSource | None = None,
    defillama: DefiLlamaClient | None = None,
    artemis: ArtemisClient | MockArtemisSource | None = None,
) -> FastAPI:
    """Build the application; collaborators default to ones derived from ``settings``."""

    settings = settings or load_settings()
    engine = engine or VolumeAdjustmentEngine.from_settings(settings)
    dune = dune or DuneSource()
    defillama = defillama or DefiLlamaClient(
        timeout=settings.request_timeout, ttl=settings.cache_ttl
    )
    if artemis is None and settings.artemis_api_key:
        artemis = ArtemisClient(settings.artemis_api_key, timeout=settings.request_timeout)
    mock_artemis = MockArtemisSource()
    responses = TTLCache(settings.cache_ttl)

    app = FastAPI(
        title="StableFlowLab",
        description="Stablecoin supply, bridge flow and payments-volume analytics",
        version="0.1.0",
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, f"Invalid parameters: {exc.errors()[0].get('msg', 'bad request')}")

    def _upstream(key: str, loader: Callable[[], Any]) -> Any:
        try:
            return responses.get_or_load(key, loader)
        except UpstreamError as exc:
            logger.warning("Upstream request for %s failed: %s", key, exc)
            return _error(502, "Failed to fetch data")
        except Exception:
            logger.exception("Error building %s", key)
            return _error(500, "Failed to fetch data")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "healthy", "liveVolumeData": engine.is_live}

    @app.get("/api/adjusted-volume")
    def adjusted_volume(rawVolume: str | None = Query(None)) -> Any:
        raw = _parse_raw_volume(rawVolume)
        if raw is None:
            return _error(400, "rawVolume parameter is required and must be positive")
        try:
            return responses.get_or_load(
                f"adjusted-volume:{raw!r}",
                lambda: engine.calculate_adjusted_volume(raw).to_dict(),
            )
        except Exception:
            logger.exception("Error calculating adjusted volume")
            return _error(500, "Failed to calculate adjusted volume")

    @app.get("/api/dune/{endpoint}")
    def dune_endpoint(
        endpoint: str,
        stablecoin: str | None = Query(None),
        days: int = Query(30, ge=1, le=365),
        minAmount: float = Query(1_000_000, ge=0),
        limit: int = Query(100, ge=1),
    ) -> Any:
        handlers: dict[str, Callable[[], Any]] = {
            "mint-burn": lambda: dune.mint_burn_events(stablecoin, days),
            "whale-transfers": lambda: dune.whale_transfers(minAmount, days),
            "active-addresses": lambda: dune.active_addresses(stablecoin, days),
            "transfer-volume": lambda: dune.transfer_volume(stablecoin, days),
            "peg-stability": lambda: dune.peg_stability(stablecoin, days),
            "top-holders": lambda: dune.top_holders(stablecoin or "", limit),
            "summary": dune.summary,
        }
        if endpoint not in handlers:
            return _error(404, "Unknown endpoint")
        if endpoint == "top-holders" and not stablecoin:
            return _error(400, "stablecoin parameter required")
        try:
            data = handlers[endpoint]()
        except Exception:
            logger.exception("Dune endpoint %s failed", endpoint)
            return _error(500, "Failed to fetch data")
        if isinstance(data, list):
            return [row.to_dict() for row in data]
        return data

    @app.get("/api/artemis/metrics")
    def artemis_metrics(
        symbol: str | None = Query(None),
        chain: str | None = Query(None),
        days: int = Query(30, ge=1, le=365),
    ) -> Any:
        rows = None
        if artemis is not None:
            try:
                rows = artemis.stablecoin_metrics(symbol, chain, days)
            except UpstreamError as exc:
                logger.warning("Artemis request failed, serving mock metrics: %s", exc)
        if rows is None:
            rows = mock_artemis.stablecoin_metrics(symbol, chain, days)
        return [row.to_dict() for row in rows]

    @app.get("/api/stablecoins")
    def stablecoins() -> Any:
        return _upstream(
            "stablecoins",
            lambda: [c.to_dict() for c in aggregation.stablecoin_metrics(defillama.stablecoins())],
        )

    @app.get("/api/stablecoins/{stablecoin_id}")
    def stablecoin_history(stablecoin_id: int) -> Any:
        return _upstream(
            f"stablecoin:{stablecoin_id}",
            lambda: defillama.stablecoin(stablecoin_id).get("tokens") or [],
        )

    @app.get("/api/chains")
    def chains() -> Any:
        return _upstream(
            "chains",
            lambda: [c.to_dict() for c in aggregation.chain_metrics(defillama.stablecoins())],
        )

    @app.get("/api/charts")
    def charts(chain: str | None = Query(None)) -> Any:
        return _upstream(
            f"charts:{chain or 'all'}",
            lambda: aggregation.historical_chart(defillama.stablecoin_charts(chain)),
        )

    @app.get("/api/metrics")
    def metrics() -> Any:
        return _upstream(
            "metrics",
            lambda: aggregation.total_metrics(aggregation.stablecoin_metrics(defillama.stablecoins())),
        )

    @app.get("/api/bridges")
    def bridges() -> Any:
        return _upstream(
            "bridges",
            lambda: [b.to_dict() for b in aggregation.bridge_metrics(defillama.bridges())],
        )

    @app.get("/api/bridges/metrics")
    def bridge_totals() -> Any:
        return _upstream(
            "bridges:metrics",
            lambda: aggregation.bridge_totals(aggregation.bridge_metrics(defillama.bridges())),
        )

    @app.get("/api/bridges/flows")
    def bridge_flows() -> Any:
        return _upstream(
            "bridges:flows", lambda: aggregation.bridge_flow_data(defillama.bridges()).to_dict()
        )

    @app.get("/api/bridges/network")
    def bridge_network() -> Any:
        return _upstream(
            "bridges:network", lambda: aggregation.network_graph_data(defillama.bridges()).to_dict()
        )

    @app.get("/api/bridges/volume/{chain}")
    def bridge_volume(chain: str) -> Any:
        return _upstream(
            f"bridges:volume:{chain}",
            lambda: aggregation.bridge_volume_history(defillama.bridge_volume(chain)),
        )

    return app


app = create_app()

__all__ = ["app", "create_app"]
