import json
from typing import Any, Mapping

import httpx
from loguru import logger
from pytoniq_core import Address

from integrations.toncenter.types import (
    AccountBalance,
    AccountSnapshot,
    AccountState,
    BlockRef,
)

MAINNET = "-239"
TESTNET = "-3"

TONCENTER_ENDPOINTS: dict[str, str] = {
    MAINNET: "https://toncenter.com/api/v3",
    TESTNET: "https://testnet.toncenter.com/api/v3",
}


class TonCenterError(Exception):
    """
    Base exception for TonCenter service errors.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WalletKeyNotFound(Exception):
    """
    The node answered, but the contract did not return a public key
    (undeployed wallet, non-wallet contract, unexpected stack).
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TonCenterClient:
    """
    Async TonCenter v3 client for reading account state from the TON blockchain.

    The client owns its HTTP connection pool; create it once per network and
    call :meth:`aclose` on shutdown.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        :param base_url: TonCenter v3 API root, e.g. ``https://toncenter.com/api/v3``.
        :param api_key: Optional API key, sent as ``X-API-Key``.
        :param timeout: Request timeout in seconds.
        :param http_client: Pre-built client (tests use a mock transport).
        """
        self.base_url = base_url.rstrip("/")
        self.headers = {"X-API-Key": api_key} if api_key else {}
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def for_network(
        cls,
        network: str,
        api_key: str | None = None,
        endpoints: Mapping[str, str] | None = None,
        timeout: float = 10.0,
    ) -> "TonCenterClient":
        endpoints = endpoints or TONCENTER_ENDPOINTS
        try:
            base_url = endpoints[network]
        except KeyError:
            raise TonCenterError(f"Unsupported network: {network}")
        return cls(base_url, api_key=api_key, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self, method: str, path: str, not_found_ok: bool = False, **kwargs
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(
                method, url, headers=self.headers, **kwargs
            )
        except httpx.HTTPError as e:
            logger.error(f"TonCenter request {path} failed: {e!r}")
            raise TonCenterError(f"TonCenter request failed: {e!r}") from e
        if not_found_ok and response.status_code == 404:
            return None
        try:
            data = response.json()
        except json.JSONDecodeError:
            logger.error(f"TonCenter API error: {response.text}")
            raise TonCenterError(f"TonCenter API error: {response.text}")
        if response.status_code >= 400 or (
            isinstance(data, dict) and data.get("error")
        ):
            error_message = (
                data.get("error") if isinstance(data, dict) else None
            ) or response.status_code
            logger.error(f"TonCenter API error: {error_message}")
            raise TonCenterError(f"TonCenter API error: {error_message}")
        return data

    @staticmethod
    def _raw_address(address: str) -> str:
        try:
            return Address(address).to_str(is_user_friendly=False)
        except Exception:
            raise TonCenterError(f"Invalid address: {address}")

    async def _get_last_block(self) -> dict:
        info = await self._request("GET", "/masterchainInfo")
        try:
            return info["last"]
        except (KeyError, TypeError):
            raise TonCenterError("Malformed masterchainInfo response")

    async def get_last_block_seqno(self) -> int:
        """
        :return: Seqno of the latest masterchain block.
        """
        last = await self._get_last_block()
        return int(last["seqno"])

    async def get_wallet_public_key(self, address: str) -> bytes:
        """
        Calls the ``get_public_key`` get-method of the wallet contract.

        :param address: Wallet address in any supported format.
        :return: 32-byte Ed25519 public key.
        :raises WalletKeyNotFound: The get-method failed or returned no key.
        :raises TonCenterError: The node could not be reached or answered with an error.
        """
        raw = self._raw_address(address)
        result = await self._request(
            "POST",
            "/runGetMethod",
            json={"address": raw, "method": "get_public_key", "stack": []},
        )
        exit_code = result.get("exit_code")
        stack = result.get("stack") or []
        if exit_code != 0 or not stack:
            logger.warning(
                f"get_public_key failed for {address}: exit_code={exit_code}"
            )
            raise WalletKeyNotFound(
                f"Wallet has no public key: exit code {exit_code}"
            )
        try:
            value = int(stack[0]["value"], 16)
            return value.to_bytes(32, "big")
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise WalletKeyNotFound(f"Malformed get_public_key result: {e!r}") from e

    async def get_account_info(self, address: str) -> AccountSnapshot:
        """
        Fetches account balance and contract state at the latest block.

        :param address: Account address in any supported format.
        :return: Account snapshot together with the block it was read at.
        """
        raw = self._raw_address(address)
        last = await self._get_last_block()
        account = await self._request(
            "GET", "/account", not_found_ok=True, params={"address": raw}
        )
        if account is None:
            # wallet is not deployed yet
            account = {"balance": "0", "status": "uninit"}
        try:
            return AccountSnapshot(
                address=raw,
                balance=AccountBalance(coins=str(account.get("balance") or "0")),
                state=AccountState(
                    type=account.get("status") or "uninit",
                    code=account.get("code"),
                    data=account.get("data"),
                ),
                block=BlockRef(
                    seqno=last["seqno"],
                    shard=str(last["shard"]),
                    root_hash=last["root_hash"],
                    file_hash=last["file_hash"],
                ),
            )
        except (KeyError, ValueError) as e:
            raise TonCenterError(f"Malformed account response: {e!r}") from e


class ChainClients:
    """One :class:`TonCenterClient` per network, built once at startup."""

    def __init__(self, clients: Mapping[str, TonCenterClient]):
        self._clients = dict(clients)

    @classmethod
    def create(
        cls,
        api_key: str | None = None,
        endpoints: Mapping[str, str] | None = None,
        timeout: float = 10.0,
    ) -> "ChainClients":
        endpoints = endpoints or TONCENTER_ENDPOINTS
        return cls(
            {
                network: TonCenterClient.for_network(
                    network, api_key=api_key, endpoints=endpoints, timeout=timeout
                )
                for network in endpoints
            }
        )

    def get(self, network: str) -> TonCenterClient:
        try:
            return self._clients[network]
        except KeyError:
            raise TonCenterError(f"Unsupported network: {network}")

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()
