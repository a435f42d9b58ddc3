from .client import (
    MAINNET,
    TESTNET,
    TONCENTER_ENDPOINTS,
    ChainClients,
    TonCenterClient,
    TonCenterError,
    WalletKeyNotFound,
)
from .types import AccountSnapshot, BlockRef

__all__ = [
    "MAINNET",
    "TESTNET",
    "TONCENTER_ENDPOINTS",
    "ChainClients",
    "TonCenterClient",
    "TonCenterError",
    "WalletKeyNotFound",
    "AccountSnapshot",
    "BlockRef",
]
