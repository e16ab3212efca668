"""Payments-volume estimation from raw stablecoin transfer volume.

Raw on-chain transfer volume overstates economic payments: most of it is
exchange shuffling, DEX routing and bridge hops.  :class:`VolumeAdjustmentEngine`
splits a raw figure into activity categories and derives

* ``adjusted_volume``: raw volume without exchange, DeFi and bridge activity;
* ``payments_volume``: the P2P and business-payment share of it.

Two strategies are available.  With a labeled-wallet provider (Artemis) the
provider's aggregate breakdown for the latest day is rescaled to the caller's
raw figure.  Without one, or whenever the provider cannot deliver, a fixed
research-derived percentage table is applied.  The engine always returns a
result.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .core import AdjustedVolumeMetrics, BreakdownEntry, ProviderVolumeBreakdown
from .core.constants import (
    ARTEMIS_METHODOLOGY,
    B2B_SHARE_OF_NON_P2P,
    ESTIMATED_ADJUSTED_RATIO,
    ESTIMATED_BREAKDOWN,
    ESTIMATED_METHODOLOGY,
    ESTIMATED_P2P_RATIO,
    ESTIMATED_PAYMENTS_RATIO,
)

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from .config import Settings
    from .sources import VolumeProvider

logger = logging.getLogger(__name__)

SOURCE_ARTEMIS = "artemis"
SOURCE_ESTIMATED = "estimated"

# the provider is always asked for the most recent day
LOOKBACK_DAYS = 1


def _share(volume: float, raw_volume: float) -> float:
    if raw_volume == 0:
        return 0.0
    return volume / raw_volume * 100


def estimated_breakdown(raw_volume: float, *, now: datetime | None = None) -> AdjustedVolumeMetrics:
    """Apply the static category table to ``raw_volume``."""

    breakdown = tuple(
        BreakdownEntry(category=category, volume=raw_volume * pct / 100, percentage=pct)
        for category, pct in ESTIMATED_BREAKDOWN
    )
    return AdjustedVolumeMetrics(
        raw_volume=raw_volume,
        adjusted_volume=raw_volume * ESTIMATED_ADJUSTED_RATIO,
        payments_volume=raw_volume * ESTIMATED_PAYMENTS_RATIO,
        p2p_volume=raw_volume * ESTIMATED_P2P_RATIO,
        breakdown=breakdown,
        source=SOURCE_ESTIMATED,
        methodology=ESTIMATED_METHODOLOGY,
        last_updated=now or datetime.now(tz=UTC),
    )


def scaled_breakdown(
    raw_volume: float,
    provider: ProviderVolumeBreakdown,
    *,
    now: datetime | None = None,
) -> AdjustedVolumeMetrics:
    """Rescale a provider breakdown so that it sums to ``raw_volume``.

    ``provider.raw_volume`` must be positive.  The provider's adjusted and P2P
    figures are scaled by the same ratio; ``payments_volume`` is not clamped
    to ``adjusted_volume``, so an internally inconsistent provider breakdown
    passes through unchanged.
    """

    scale = raw_volume / provider.raw_volume
    adjusted = provider.adjusted_volume * scale
    p2p = provider.p2p_volume * scale
    cex = raw_volume - adjusted
    defi = adjusted - p2p
    payments = p2p + (adjusted - p2p) * B2B_SHARE_OF_NON_P2P
    b2b = payments - p2p

    breakdown = tuple(
        BreakdownEntry(category=category, volume=volume, percentage=_share(volume, raw_volume))
        for category, volume in (
            ("CEX Activity", cex),
            ("DeFi/DEX", defi),
            ("P2P Transfers", p2p),
            ("B2B Payments", b2b),
        )
    )
    return AdjustedVolumeMetrics(
        raw_volume=raw_volume,
        adjusted_volume=adjusted,
        payments_volume=payments,
        p2p_volume=p2p,
        breakdown=breakdown,
        source=SOURCE_ARTEMIS,
        methodology=ARTEMIS_METHODOLOGY,
        last_updated=now or datetime.now(tz=UTC),
    )


class VolumeAdjustmentEngine:
    """Convert raw transfer volume into a payments-focused estimate.

    Parameters
    ----------
    provider:
        Labeled-wallet data source.  ``None`` selects the static estimate.
    clock:
        Callable returning the timestamp stamped on each result.
    """

    def __init__(
        self,
        provider: VolumeProvider | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.provider = provider
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    @classmethod
    def from_settings(cls, settings: Settings) -> "VolumeAdjustmentEngine":
        """Wire an Artemis client when an API key is configured."""

        from .sources import ArtemisClient

        if not settings.artemis_api_key:
            return cls()
        return cls(ArtemisClient(settings.artemis_api_key, timeout=settings.request_timeout))

    @property
    def is_live(self) -> bool:
        return self.provider is not None

    def _live_breakdown(self) -> ProviderVolumeBreakdown | None:
        """Latest provider breakdown, or ``None`` when it is unusable."""

        if self.provider is None:
            return None
        try:
            data = self.provider.fetch_volume_breakdown(LOOKBACK_DAYS)
        except Exception as exc:
            logger.warning("Artemis request failed, falling back to estimates: %s", exc)
            return None
        if not math.isfinite(data.raw_volume) or data.raw_volume <= 0:
            logger.warning(
                "Artemis returned raw volume %r, falling back to estimates", data.raw_volume
            )
            return None
        return data

    def calculate_adjusted_volume(self, raw_volume: float) -> AdjustedVolumeMetrics:
        """Break ``raw_volume`` down into categories and payments volume.

        The caller validates ``raw_volume``; it is echoed unchanged.
        """

        now = self._clock()
        live = self._live_breakdown()
        if live is None:
            return estimated_breakdown(raw_volume, now=now)
        return scaled_breakdown(raw_volume, live, now=now)


def calculate_adjusted_volume(
    raw_volume: float, provider: VolumeProvider | None = None
) -> AdjustedVolumeMetrics:
    """Functional shortcut for :meth:`VolumeAdjustmentEngine.calculate_adjusted_volume`."""

    return VolumeAdjustmentEngine(provider).calculate_adjusted_volume(raw_volume)


__all__ = [
    "SOURCE_ARTEMIS",
    "SOURCE_ESTIMATED",
    "VolumeAdjustmentEngine",
    "calculate_adjusted_volume",
    "estimated_breakdown",
    "scaled_breakdown",
]
