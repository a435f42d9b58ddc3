"""
Pytest fixtures: a real Ed25519 wallet with its stateInit and a helper that
signs ton_proof messages the way a TonConnect wallet does.
"""
import base64
import os
import time
from dataclasses import dataclass

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("FRONTEND_URL", "http://localhost:3000/")

import pytest
from nacl.signing import SigningKey
from pytoniq_core import Address, Cell, StateInit, begin_cell

from fastapi_tonproof.auth.tonconnect import build_proof_message_hash
from integrations.toncenter import TonCenterError, WalletKeyNotFound
from integrations.toncenter.types import (
    AccountBalance,
    AccountSnapshot,
    AccountState,
    BlockRef,
)

ALLOWED_DOMAIN = "localhost:3000"
SUBWALLET_ID = 698983191


@dataclass
class DemoWallet:
    signing_key: SigningKey
    code: Cell
    state_init: StateInit
    address: Address
    state_init_b64: str

    @property
    def public_key(self) -> bytes:
        return self.signing_key.verify_key.encode()

    @property
    def raw_address(self) -> str:
        return self.address.to_str(is_user_friendly=False)


def make_wallet(signing_key: SigningKey | None = None, code_tag: int = 0xC0DE) -> DemoWallet:
    signing_key = signing_key or SigningKey.generate()
    code = begin_cell().store_uint(code_tag, 32).end_cell()
    data = (
        begin_cell()
        .store_uint(0, 32)
        .store_uint(SUBWALLET_ID, 32)
        .store_bytes(signing_key.verify_key.encode())
        .end_cell()
    )
    state_init = StateInit(code=code, data=data)
    cell = state_init.serialize()
    return DemoWallet(
        signing_key=signing_key,
        code=code,
        state_init=state_init,
        address=Address(f"0:{cell.hash.hex()}"),
        state_init_b64=base64.b64encode(cell.to_boc()).decode(),
    )


def sign_proof(
    wallet: DemoWallet,
    payload: str,
    domain: str = ALLOWED_DOMAIN,
    timestamp: int | None = None,
    address: Address | None = None,
    network: str = "-239",
) -> dict:
    """Собирает тело запроса check-proof, подписанное ключом кошелька."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed_address = address or wallet.address
    message_hash = build_proof_message_hash(signed_address, domain, timestamp, payload)
    signature = wallet.signing_key.sign(message_hash).signature
    return {
        "address": signed_address.to_str(is_user_friendly=False),
        "network": network,
        "public_key": wallet.public_key.hex(),
        "proof": {
            "timestamp": timestamp,
            "domain": {"lengthBytes": len(domain.encode()), "value": domain},
            "signature": base64.b64encode(signature).decode(),
            "payload": payload,
            "state_init": wallet.state_init_b64,
        },
    }


@pytest.fixture
def wallet() -> DemoWallet:
    return make_wallet()


class FakeTonClient:
    """Stand-in for TonCenterClient that answers from memory."""

    def __init__(self, public_keys: dict[str, bytes] | None = None, fail: bool = False):
        self.public_keys = public_keys or {}
        self.fail = fail
        self.calls: list[str] = []

    async def get_wallet_public_key(self, address: str) -> bytes:
        self.calls.append(address)
        if self.fail:
            raise TonCenterError("node is down")
        raw = Address(address).to_str(is_user_friendly=False)
        if raw not in self.public_keys:
            raise WalletKeyNotFound("exit code -13")
        return self.public_keys[raw]

    async def get_account_info(self, address: str) -> AccountSnapshot:
        self.calls.append(address)
        if self.fail:
            raise TonCenterError("node is down")
        return AccountSnapshot(
            address=Address(address).to_str(is_user_friendly=False),
            balance=AccountBalance(coins="1500000000"),
            state=AccountState(type="active", code="te6cc", data="te6cc"),
            block=BlockRef(seqno=42, shard="8000000000000000", root_hash="r", file_hash="f"),
        )


class FakeChainClients:
    def __init__(self, client: FakeTonClient):
        self.client = client

    def get(self, network: str) -> FakeTonClient:
        return self.client
