"""Known exchange, DEX router and bridge addresses on Ethereum mainnet.

The tables back :func:`get_excluded_addresses`, the set of counterparties
whose transfers do not count as payments.  Nothing in the volume engine
filters live transactions with it yet; it is kept as a standalone utility.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

EXCLUDED_CATEGORIES = (
    "cex",
    "dex",
    "bridge",
    "lending",
    "mev",
    "mixer",
)

# Hot wallets of the largest centralised exchanges.
CEX_ADDRESSES: Mapping[str, Sequence[str]] = {
    "binance": (
        "0x28C6c06298d514Db089934071355E5743bf21d60",
        "0x21a31Ee1afC51d94C2eFcCAa2092aD1028285549",
        "0xDFd5293D8e347dFe59E90eFd55b2956a1343963d",
        "0x56Eddb7aa87536c09CCc2793473599fD21A8b17F",
        "0xF977814e90dA44bFA03b6295A0616a897441aceC",
    ),
    "coinbase": (
        "0x71660c4005BA85c37ccec55d0C4493E66Fe775d3",
        "0x503828976D22510aad0201ac7EC88293211D23Da",
        "0xddfAbCdc4D8FfC6d5beaf154f18B778f892A0740",
        "0x3cD751E6b0078Be393132286c442345e5DC49699",
        "0xA9D1e08C7793af67e9d92fe308d5697FB81d3E43",
    ),
    "kraken": (
        "0x2910543Af39abA0Cd09dBb2D50200b3E800A63D2",
        "0x0A869d79a7052C7f1b55a8EbAbbEa3420F0D1E13",
        "0xE853c56864A2ebe4576a807D26Fdc4A0adA51919",
    ),
    "okx": (
        "0x6cC5F688a315f3dC28A7781717a9A798a59fDA7b",
        "0x236F9F97e0E62388479bf9E5BA4889e46B0273C3",
    ),
    "bybit": ("0xf89d7b9c864f589bbF53a82105107622B35EaA40",),
}

# Aggregator and AMM router contracts.
DEX_ADDRESSES: Mapping[str, Sequence[str]] = {
    "uniswap": (
        "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
        "0xE592427A0AEce92De3Edee1F18E0157C05861564",
        "0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45",
        "0x3fC91A3afd70395Cd496C647d5a6CC9D4B2b7FAD",
    ),
    "sushiswap": ("0xd9e1cE17f2641f24aE83637ab66a2cca9C378B9F",),
    "curve": ("0x99a58482BD75cbab83b27EC03CA68fF489b5788f",),
    "1inch": (
        "0x1111111254fb6c44bAC0beD2854e76F90643097d",
        "0x1111111254EEB25477B68fb85Ed929f73A960582",
    ),
}

BRIDGE_ADDRESSES: Mapping[str, Sequence[str]] = {
    "stargate": ("0x8731d54E9D02c286767d56ac03e8037C07e01e98",),
    "hop": ("0xb8901acB165ed027E32754E0FFe830802919727f",),
    "across": ("0x4D9079Bb4165aeb4084c526a32695dCfd2F77381",),
}

_TABLES: tuple[tuple[str, Mapping[str, Sequence[str]]], ...] = (
    ("cex", CEX_ADDRESSES),
    ("dex", DEX_ADDRESSES),
    ("bridge", BRIDGE_ADDRESSES),
)


def _flatten(table: Mapping[str, Sequence[str]]) -> set[str]:
    return {addr.lower() for addrs in table.values() for addr in addrs}


def get_excluded_addresses() -> frozenset[str]:
    """Return the lower-cased union of the exchange, DEX and bridge tables."""

    excluded: set[str] = set()
    for _, table in _TABLES:
        excluded |= _flatten(table)
    return frozenset(excluded)


def classify_address(address: str) -> str | None:
    """Return ``"cex"``, ``"dex"`` or ``"bridge"`` for a known address."""

    needle = address.strip().lower()
    for category, table in _TABLES:
        if needle in _flatten(table):
            return category
    return None


__all__ = [
    "BRIDGE_ADDRESSES",
    "CEX_ADDRESSES",
    "DEX_ADDRESSES",
    "EXCLUDED_CATEGORIES",
    "classify_address",
    "get_excluded_addresses",
]
