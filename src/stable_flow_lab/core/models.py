"""Immutable data models used throughout StableFlowLab."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

from .constants import B2B_SHARE_OF_NON_P2P


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


class Record:
    """Mixin giving dataclasses a JSON-ready, camelCase ``to_dict``."""

    def to_dict(self) -> dict[str, Any]:
        return {
            _camel(f.name): _jsonable(getattr(self, f.name))
            for f in fields(self)  # type: ignore[arg-type]
        }


# -----------------
# Volume adjustment
# -----------------


@dataclass(frozen=True)
class BreakdownEntry(Record):
    """One category of a volume breakdown."""

    category: str
    volume: float
    percentage: float  # volume / raw volume * 100


@dataclass(frozen=True)
class AdjustedVolumeMetrics(Record):
    """Payments-focused view of a raw transfer volume figure."""

    raw_volume: float
    adjusted_volume: float  # excludes exchange, DeFi and bridge activity
    payments_volume: float  # P2P plus B2B-equivalent
    p2p_volume: float
    breakdown: tuple[BreakdownEntry, ...]
    source: str  # "artemis" or "estimated"
    methodology: str
    last_updated: datetime

    def volumes(self) -> dict[str, Any]:
        """Return every field except the timestamp, for equality checks."""

        data = self.to_dict()
        data.pop("lastUpdated")
        return data


@dataclass(frozen=True)
class ProviderVolumeBreakdown(Record):
    """Aggregate labeled-wallet volumes for one period."""

    date: str
    raw_volume: float
    adjusted_volume: float
    p2p_volume: float

    @property
    def cex_volume(self) -> float:
        return self.raw_volume - self.adjusted_volume

    @property
    def defi_volume(self) -> float:
        return self.adjusted_volume - self.p2p_volume

    @property
    def payments_volume(self) -> float:
        return self.p2p_volume + (self.adjusted_volume - self.p2p_volume) * B2B_SHARE_OF_NON_P2P

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            cexVolume=self.cex_volume,
            defiVolume=self.defi_volume,
            paymentsVolume=self.payments_volume,
        )
        return data


@dataclass(frozen=True)
class ArtemisStablecoinMetrics(Record):
    """Daily per-chain stablecoin activity as reported by Artemis."""

    date: str
    chain: str
    symbol: str
    transfer_volume: float  # raw, unfiltered
    artemis_transfer_volume: float  # no CEX internal transfers, no MEV
    p2p_transfer_volume: float  # EOA to EOA only
    daily_txns: int = 0
    artemis_daily_txns: int = 0
    p2p_daily_txns: int = 0
    supply: float = 0.0
    dau: int = 0

    @classmethod
    def from_api(cls, item: Mapping[str, Any]) -> "ArtemisStablecoinMetrics":
        return cls(
            date=str(item.get("date", "")),
            chain=str(item.get("chain", "")),
            symbol=str(item.get("symbol", "")),
            transfer_volume=float(item.get("transferVolume") or 0.0),
            artemis_transfer_volume=float(item.get("artemisTransferVolume") or 0.0),
            p2p_transfer_volume=float(item.get("p2pTransferVolume") or 0.0),
            daily_txns=int(item.get("dailyTxns") or 0),
            artemis_daily_txns=int(item.get("artemisDailyTxns") or 0),
            p2p_daily_txns=int(item.get("p2pDailyTxns") or 0),
            supply=float(item.get("supply") or 0.0),
            dau=int(item.get("dau") or 0),
        )


# -----------------
# Supply and bridges
# -----------------


@dataclass(frozen=True)
class StablecoinMetrics(Record):
    """Circulating supply snapshot of one pegged asset with derived changes."""

    id: int
    name: str
    symbol: str
    peg_type: str
    peg_mechanism: str
    total_circulating: float
    change_24h: float = 0.0  # percent
    change_7d: float = 0.0
    change_30d: float = 0.0
    dominance: float = 0.0  # percent of total market cap
    price: float | None = None
    gecko_id: str | None = None
    chains: tuple[str, ...] = ()
    circulating: Mapping[str, Mapping[str, float | None]] = field(default_factory=dict)


@dataclass(frozen=True)
class ChainMetrics(Record):
    name: str
    total_stablecoin_usd: float
    stablecoin_count: int
    change_24h: float
    change_7d: float
    top_stablecoins: tuple[Mapping[str, Any], ...] = ()


@dataclass(frozen=True)
class BridgeMetrics(Record):
    id: int
    name: str
    display_name: str
    last_daily_volume: float
    day_before_last_volume: float
    weekly_volume: float
    monthly_volume: float
    change_24h: float
    change_7d: float
    chains: tuple[str, ...] = ()
    destination_chain: str | None = None


@dataclass(frozen=True)
class FlowNode(Record):
    id: str
    name: str
    color: str
    value: float = 0.0


@dataclass(frozen=True)
class FlowLink(Record):
    source: str
    target: str
    value: float
    color: str | None = None


@dataclass(frozen=True)
class FlowData(Record):
    """Sankey diagram input: directional chain-to-chain bridge flows."""

    nodes: tuple[FlowNode, ...]
    links: tuple[FlowLink, ...]


@dataclass(frozen=True)
class NetworkNode(Record):
    id: str
    name: str
    value: float
    color: str


@dataclass(frozen=True)
class NetworkLink(Record):
    source: str
    target: str
    value: float


@dataclass(frozen=True)
class NetworkData(Record):
    """Undirected graph of chains connected by shared bridges."""

    nodes: tuple[NetworkNode, ...]
    links: tuple[NetworkLink, ...]


# -----------------
# On-chain activity
# -----------------


@dataclass(frozen=True)
class MintBurnEvent(Record):
    timestamp: str
    stablecoin: str
    type: str  # "mint" or "burn"
    amount: float
    amount_usd: float
    chain: str
    tx_hash: str
    issuer: str | None = None


@dataclass(frozen=True)
class WhaleTransfer(Record):
    timestamp: str
    stablecoin: str
    from_address: str
    to_address: str
    amount: float
    amount_usd: float
    chain: str
    tx_hash: str
    from_label: str | None = None
    to_label: str | None = None


@dataclass(frozen=True)
class ActiveAddressMetrics(Record):
    date: str
    stablecoin: str
    daily_active: int
    weekly_active: int
    monthly_active: int
    new_addresses: int
    chain: str = "all"


@dataclass(frozen=True)
class TransferVolumeMetrics(Record):
    date: str
    stablecoin: str
    volume: float
    tx_count: int
    avg_tx_size: float
    median_tx_size: float
    chain: str = "all"


@dataclass(frozen=True)
class PegStabilityMetrics(Record):
    timestamp: str
    stablecoin: str
    price: float
    deviation: float  # percent away from $1.00
    source: str


@dataclass(frozen=True)
class TopHolder(Record):
    address: str
    balance: float
    balance_usd: float
    percent_of_supply: float
    stablecoin: str
    chain: str
    last_activity: str
    label: str | None = None


__all__ = [
    "ActiveAddressMetrics",
    "AdjustedVolumeMetrics",
    "ArtemisStablecoinMetrics",
    "BreakdownEntry",
    "BridgeMetrics",
    "ChainMetrics",
    "FlowData",
    "FlowLink",
    "FlowNode",
    "MintBurnEvent",
    "NetworkData",
    "NetworkLink",
    "NetworkNode",
    "PegStabilityMetrics",
    "ProviderVolumeBreakdown",
    "Record",
    "StablecoinMetrics",
    "TopHolder",
    "TransferVolumeMetrics",
    "WhaleTransfer",
]
