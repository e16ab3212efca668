"""
StableFlowLab: stablecoin supply, bridge flow and payments-volume analytics.

Design goals:
- Thin adapters over DefiLlama, Dune and Artemis that raise on failure
- Immutable data models + light repositories with pandas export
- A volume adjustment engine that always answers, live or estimated
- Matplotlib visualizations (single-plot functions) and CSV reporting
- A FastAPI app serving the reshaped data as JSON
"""

from __future__ import annotations

import logging

from . import aggregation, formatting
from .config import Settings, load_config, load_settings
from .core import (
    ActivityRepository,
    AdjustedVolumeMetrics,
    BreakdownEntry,
    ProviderVolumeBreakdown,
    StablecoinMetrics,
    StablecoinRepository,
    get_excluded_addresses,
)
from .reporting import snapshot_report
from .sources import (
    ArtemisClient,
    DefiLlamaClient,
    DuneClient,
    DuneSource,
    MockArtemisSource,
    UpstreamError,
    VolumeProvider,
)
from .visualization import Visualizer
from .volume import VolumeAdjustmentEngine, calculate_adjusted_volume

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ActivityRepository",
    "AdjustedVolumeMetrics",
    "ArtemisClient",
    "BreakdownEntry",
    "DefiLlamaClient",
    "DuneClient",
    "DuneSource",
    "MockArtemisSource",
    "ProviderVolumeBreakdown",
    "Settings",
    "StablecoinMetrics",
    "StablecoinRepository",
    "UpstreamError",
    "Visualizer",
    "VolumeAdjustmentEngine",
    "VolumeProvider",
    "aggregation",
    "calculate_adjusted_volume",
    "formatting",
    "get_excluded_addresses",
    "load_config",
    "load_settings",
    "snapshot_report",
]
