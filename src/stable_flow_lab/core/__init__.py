"""Core data structures for :mod:`stable_flow_lab`.

This subpackage groups the fundamental models, static lookup tables and
repositories used across the project so they can be shared without importing
the HTTP clients or the web application.
"""

from __future__ import annotations

from .addresses import (
    BRIDGE_ADDRESSES,
    CEX_ADDRESSES,
    DEX_ADDRESSES,
    EXCLUDED_CATEGORIES,
    classify_address,
    get_excluded_addresses,
)
from .models import (
    ActiveAddressMetrics,
    AdjustedVolumeMetrics,
    ArtemisStablecoinMetrics,
    BreakdownEntry,
    BridgeMetrics,
    ChainMetrics,
    FlowData,
    FlowLink,
    FlowNode,
    MintBurnEvent,
    NetworkData,
    NetworkLink,
    NetworkNode,
    PegStabilityMetrics,
    ProviderVolumeBreakdown,
    StablecoinMetrics,
    TopHolder,
    TransferVolumeMetrics,
    WhaleTransfer,
)
from .repositories import ActivityRepository, StablecoinRepository

__all__ = [
    "ActiveAddressMetrics",
    "ActivityRepository",
    "AdjustedVolumeMetrics",
    "ArtemisStablecoinMetrics",
    "BRIDGE_ADDRESSES",
    "BreakdownEntry",
    "BridgeMetrics",
    "CEX_ADDRESSES",
    "ChainMetrics",
    "DEX_ADDRESSES",
    "EXCLUDED_CATEGORIES",
    "FlowData",
    "FlowLink",
    "FlowNode",
    "MintBurnEvent",
    "NetworkData",
    "NetworkLink",
    "NetworkNode",
    "PegStabilityMetrics",
    "ProviderVolumeBreakdown",
    "StablecoinMetrics",
    "StablecoinRepository",
    "TopHolder",
    "TransferVolumeMetrics",
    "WhaleTransfer",
    "classify_address",
    "get_excluded_addresses",
]
