"""Core constants shared across StableFlowLab modules."""

from __future__ import annotations

# Category shares of raw transfer volume, in percent.
#
# Taken from the Visa/Allium on-chain analytics and the Artemis 2025
# stablecoin payments report.  The ratios below are maintained by hand and are
# not re-derived from this table; update both together when the research is
# refreshed.
ESTIMATED_BREAKDOWN: tuple[tuple[str, float], ...] = (
    ("CEX Activity", 28.0),
    ("DeFi/DEX", 22.0),
    ("Bridges", 8.0),
    ("B2B Payments", 18.0),
    ("P2P Transfers", 10.0),
    ("P2B/B2P", 10.0),
    ("Other/Unknown", 4.0),
)

ESTIMATED_ADJUSTED_RATIO = 0.42  # raw minus CEX, DeFi and bridges
ESTIMATED_PAYMENTS_RATIO = 0.38  # B2B + P2P + P2B/B2P
ESTIMATED_P2P_RATIO = 0.10

# Share of filtered non-P2P volume attributed to business payments.
B2B_SHARE_OF_NON_P2P = 0.8

ARTEMIS_METHODOLOGY = (
    "Artemis labeled wallet data: ARTEMIS_STABLECOIN_TRANSFER_VOLUME excludes CEX "
    "internal transfers and MEV. P2P_STABLECOIN_TRANSFER_VOLUME tracks EOA-to-EOA "
    "transfers."
)
ESTIMATED_METHODOLOGY = (
    "Estimated based on Visa/Allium & Artemis 2025 research. Add ARTEMIS_API_KEY "
    "for real labeled data."
)

# Bridge flow layout: settlement chains on the left of the Sankey diagram,
# rollups and destination chains on the right.
L1_CHAINS = frozenset({"Ethereum", "BSC", "Tron", "Solana", "Avalanche", "Polygon"})
L2_CHAINS = frozenset(
    {
        "Arbitrum",
        "Optimism",
        "Base",
        "zkSync Era",
        "Linea",
        "Scroll",
        "Mantle",
        "Blast",
        "Mode",
        "Manta",
    }
)

CHAIN_COLORS = {
    "Ethereum": "#627EEA",
    "Tron": "#FF0013",
    "BSC": "#F0B90B",
    "Solana": "#9945FF",
    "Arbitrum": "#28A0F0",
    "Polygon": "#8247E5",
    "Avalanche": "#E84142",
    "Optimism": "#FF0420",
    "Base": "#0052FF",
    "Fantom": "#1969FF",
    "Gnosis": "#04795B",
    "zkSync Era": "#8C8DFC",
    "Linea": "#61DFFF",
    "Mantle": "#000000",
    "Scroll": "#FFEEDA",
}

__all__ = [
    "ARTEMIS_METHODOLOGY",
    "B2B_SHARE_OF_NON_P2P",
    "CHAIN_COLORS",
    "ESTIMATED_ADJUSTED_RATIO",
    "ESTIMATED_BREAKDOWN",
    "ESTIMATED_METHODOLOGY",
    "ESTIMATED_P2P_RATIO",
    "ESTIMATED_PAYMENTS_RATIO",
    "L1_CHAINS",
    "L2_CHAINS",
]
