# Проверка TonConnect ton_proof (подписи кошелька), см.
# https://github.com/ton-blockchain/ton-connect/blob/main/requests-responses.md#address-proof-signature-ton_proof

import base64
import hashlib
import struct
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional

import nacl.utils
from loguru import logger
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey
from pytoniq_core import Address, Cell, StateInit

from fastapi_tonproof.auth.wallets_data import try_parse_public_key
from fastapi_tonproof.schemas.auth import CheckProofIn, TonProofData
from integrations.toncenter import WalletKeyNotFound

TON_PROOF_PREFIX = b"ton-proof-item-v2/"
TON_CONNECT_PREFIX = b"ton-connect"
VALID_AUTH_TIME = 15 * 60  # секунд

type PublicKeyLookup = Callable[[str], Awaitable[bytes]]


def generate_payload() -> str:
    """32 случайных байта из CSPRNG в hex: challenge, который подпишет кошелёк."""
    return nacl.utils.random(32).hex()


class ProofFailure(str, Enum):
    MALFORMED = "malformed"
    PUBLIC_KEY_UNAVAILABLE = "public_key_unavailable"
    PUBLIC_KEY_NOT_FOUND = "public_key_not_found"
    PUBLIC_KEY_MISMATCH = "public_key_mismatch"
    ADDRESS_MISMATCH = "address_mismatch"
    DOMAIN_NOT_ALLOWED = "domain_not_allowed"
    DOMAIN_LENGTH_MISMATCH = "domain_length_mismatch"
    TIMESTAMP_EXPIRED = "timestamp_expired"
    BAD_SIGNATURE = "bad_signature"


@dataclass(frozen=True)
class ProofCheckResult:
    """Итог проверки: `ok` либо причина отказа. Приводится к bool."""

    ok: bool
    failure: Optional[ProofFailure] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "ProofCheckResult":
        return cls(ok=True)

    @classmethod
    def fail(cls, failure: ProofFailure) -> "ProofCheckResult":
        return cls(ok=False, failure=failure)


def parse_state_init(state_init_b64: str) -> StateInit:
    cell = Cell.one_from_boc(base64.b64decode(state_init_b64, validate=True))
    return StateInit.deserialize(cell.begin_parse())


def build_proof_message_hash(
    address: Address, domain: str, timestamp: int, payload: str
) -> bytes:
    """
    Собирает сообщение ton_proof и возвращает хэш, который подписывает кошелёк.

    Раскладка байт фиксирована протоколом:
    ``"ton-proof-item-v2/" | wc (int32 BE) | hash (32) | len(domain) (uint32 LE)
    | domain | timestamp (uint64 LE) | payload``, затем
    ``sha256(0xffff | "ton-connect" | sha256(message))``.
    """
    domain_bytes = domain.encode()
    message = b"".join(
        (
            TON_PROOF_PREFIX,
            struct.pack(">i", address.wc),
            address.hash_part,
            struct.pack("<I", len(domain_bytes)),
            domain_bytes,
            struct.pack("<Q", timestamp),
            payload.encode(),
        )
    )
    full_message = b"\xff\xff" + TON_CONNECT_PREFIX + hashlib.sha256(message).digest()
    return hashlib.sha256(full_message).digest()


class TonProofVerifier:
    """
    Проверяет TonConnect-доказательство владения кошельком.

    Экземпляр не хранит изменяемого состояния, поэтому один объект можно
    использовать из конкурентных запросов.
    """

    def __init__(
        self, allowed_domains: Iterable[str], valid_auth_time: int = VALID_AUTH_TIME
    ):
        self.allowed_domains = frozenset(allowed_domains)
        self.valid_auth_time = valid_auth_time

    async def check_proof(
        self, request: CheckProofIn, get_wallet_public_key: PublicKeyLookup
    ) -> ProofCheckResult:
        """
        Прогоняет доказательство через все проверки по порядку.

        Первая же неудачная проверка завершает конвейер. Исключения наружу не
        пробрасываются: любая ошибка превращается в неуспешный результат.

        :param request: Запрос с адресом, заявленным публичным ключом и proof.
        :param get_wallet_public_key: Асинхронный поиск ключа кошелька на ноде
            (вызывается, только если ключ нельзя достать из stateInit).
            ``WalletKeyNotFound`` означает ответ ноды «ключа нет», любая
            другая ошибка означает, что нода недоступна.
        """
        try:
            return await self._check_proof(request, get_wallet_public_key)
        except Exception:
            logger.exception(f"Proof verification failed for {request.address}")
            return ProofCheckResult.fail(ProofFailure.MALFORMED)

    async def _check_proof(
        self, request: CheckProofIn, get_wallet_public_key: PublicKeyLookup
    ) -> ProofCheckResult:
        proof = request.proof
        try:
            state_init = parse_state_init(proof.state_init)
            address = Address(request.address)
            wanted_public_key = bytes.fromhex(request.public_key)
            signature = base64.b64decode(proof.signature, validate=True)
        except Exception as e:
            logger.warning(f"Malformed proof from {request.address}: {e!r}")
            return ProofCheckResult.fail(ProofFailure.MALFORMED)

        public_key = try_parse_public_key(state_init)
        if public_key is None:
            try:
                public_key = await get_wallet_public_key(request.address)
            except WalletKeyNotFound as e:
                logger.warning(f"No public key for {request.address}: {e.message}")
                return ProofCheckResult.fail(ProofFailure.PUBLIC_KEY_NOT_FOUND)
            except Exception as e:
                logger.error(
                    f"Public key lookup failed for {request.address}: {e!r}"
                )
                return ProofCheckResult.fail(ProofFailure.PUBLIC_KEY_UNAVAILABLE)
        if public_key != wanted_public_key:
            logger.warning(f"Public key verification failed for {request.address}")
            return ProofCheckResult.fail(ProofFailure.PUBLIC_KEY_MISMATCH)

        if not self.verify_address(address, state_init):
            logger.warning(f"Address verification failed for {request.address}")
            return ProofCheckResult.fail(ProofFailure.ADDRESS_MISMATCH)

        failure = self.verify_domain_and_timestamp(proof)
        if failure is not None:
            logger.warning(
                f"Domain or timestamp verification failed: {failure.value}, "
                f"domain={proof.domain.value!r}, timestamp={proof.timestamp}"
            )
            return ProofCheckResult.fail(failure)

        message_hash = build_proof_message_hash(
            address, proof.domain.value, proof.timestamp, proof.payload
        )
        try:
            VerifyKey(public_key).verify(message_hash, signature)
        except (BadSignatureError, ValueError):
            logger.warning(f"Signature verification failed for {request.address}")
            return ProofCheckResult.fail(ProofFailure.BAD_SIGNATURE)

        return ProofCheckResult.success()

    @staticmethod
    def verify_address(address: Address, state_init: StateInit) -> bool:
        # адрес контракта = (workchain, hash(StateInit))
        return state_init.serialize().hash == address.hash_part

    def verify_domain_and_timestamp(
        self, proof: TonProofData
    ) -> Optional[ProofFailure]:
        if proof.domain.value not in self.allowed_domains:
            return ProofFailure.DOMAIN_NOT_ALLOWED
        if proof.domain.lengthBytes != len(proof.domain.value.encode()):
            return ProofFailure.DOMAIN_LENGTH_MISMATCH
        # TODO: решить, отбрасывать ли timestamp из будущего (сейчас только нижняя граница)
        if int(time.time()) - self.valid_auth_time > proof.timestamp:
            return ProofFailure.TIMESTAMP_EXPIRED
        return None
