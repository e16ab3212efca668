"""Upstream API adapters used by :mod:`stable_flow_lab`."""

from __future__ import annotations

from typing import Protocol

from ..core import ProviderVolumeBreakdown
from .artemis import ArtemisClient, MockArtemisSource
from .defillama import DefiLlamaClient
from .dune import QUERY_IDS, DuneClient, DuneSource
from .http import TTLCache, UpstreamError, fetch_json


class VolumeProvider(Protocol):
    """Labeled-wallet provider of aggregate raw, filtered and P2P volume."""

    def fetch_volume_breakdown(self, days: int = 1) -> ProviderVolumeBreakdown: ...


__all__ = [
    "ArtemisClient",
    "DefiLlamaClient",
    "DuneClient",
    "DuneSource",
    "MockArtemisSource",
    "QUERY_IDS",
    "TTLCache",
    "UpstreamError",
    "VolumeProvider",
    "fetch_json",
]
