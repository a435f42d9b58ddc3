from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from pytoniq_core import Address

from fastapi_tonproof.api.deps import (
    current_account,
    get_chain_clients,
    get_proof_verifier,
)
from fastapi_tonproof.auth.jwt_utils import (
    PAYLOAD_TOKEN_TYPE,
    AuthToken,
    create_auth_token,
    create_payload_token,
    verify_token,
)
from fastapi_tonproof.auth.tonconnect import (
    ProofFailure,
    TonProofVerifier,
    generate_payload,
)
from fastapi_tonproof.schemas.auth import (
    AccountInfoOut,
    AccountOut,
    CheckProofIn,
    TokenOut,
)
from fastapi_tonproof.settings import settings
from fastapi_tonproof.utils.retry import with_retry
from integrations.toncenter import ChainClients, TonCenterError

router = APIRouter()


@router.get(
    "/auth/generate-payload",
    response_model=TokenOut,
    summary="Выдача challenge для ton_proof",
    description=(
        "Генерирует случайный payload и заворачивает его в короткоживущий подписанный токен. "
        "Именно этот токен кошелёк подписывает в поле `payload` TonConnect-доказательства."
    ),
    responses={200: {"description": "Payload-токен создан."}},
)
async def generate_payload_token():
    token = create_payload_token(
        generate_payload(),
        settings.jwt_secret.get_secret_value(),
        settings.jwt_alg,
        settings.jwt_payload_ttl,
    )
    logger.debug("Generated auth payload token")
    return TokenOut(token=token)


@router.post(
    "/auth/check-proof",
    response_model=TokenOut,
    summary="Логин через TonConnect",
    description=(
        "Верифицирует доказательство TonConnect (stateInit, публичный ключ, адрес, домен, время, подпись) "
        "и проверяет, что подписанный payload выдан этим сервером. При успехе выдаёт сессионный токен."
    ),
    responses={
        200: {"description": "Доказательство принято, выдан сессионный токен."},
        400: {"description": "Некорректное доказательство или payload-токен."},
        503: {"description": "Нода TON недоступна, публичный ключ не получен."},
    },
)
async def check_proof(
    body: CheckProofIn,
    chain_clients: ChainClients = Depends(get_chain_clients),
    verifier: TonProofVerifier = Depends(get_proof_verifier),
):
    """
    Проверяет TonConnect-доказательство и выдаёт сессионный JWT.

    Причина отказа клиенту не сообщается, она только пишется в лог.
    """
    client = chain_clients.get(body.network.value)

    def lookup(address: str):
        return with_retry(
            lambda: client.get_wallet_public_key(address),
            settings.chain_retry_attempts,
            settings.chain_retry_delay_ms,
            retry_on=(TonCenterError,),
        )

    result = await verifier.check_proof(body, lookup)
    if result.failure is ProofFailure.PUBLIC_KEY_UNAVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chain node unavailable",
        )
    if not result:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid proof"
        )

    secret = settings.jwt_secret.get_secret_value()
    if not verify_token(
        body.proof.payload, secret, settings.jwt_alg, PAYLOAD_TOKEN_TYPE
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token"
        )

    return TokenOut(
        token=create_auth_token(
            body.address,
            body.network.value,
            secret,
            settings.jwt_alg,
            settings.jwt_access_ttl,
        )
    )


@router.get(
    "/auth/get-account-info",
    response_model=AccountInfoOut,
    summary="Состояние аккаунта текущего кошелька",
    description=(
        "По сессионному токену (cookie `accessToken` или `Authorization: Bearer`) "
        "возвращает баланс и состояние контракта кошелька."
    ),
    responses={
        200: {"description": "Снимок аккаунта получен."},
        401: {"description": "Токен отсутствует, истёк или недействителен."},
        503: {"description": "Нода TON недоступна."},
    },
)
async def get_account_info(
    account: AuthToken = Depends(current_account),
    chain_clients: ChainClients = Depends(get_chain_clients),
):
    try:
        client = chain_clients.get(account["network"])
        snapshot = await with_retry(
            lambda: client.get_account_info(account["address"]),
            settings.chain_retry_attempts,
            settings.chain_retry_delay_ms,
        )
    except TonCenterError as e:
        logger.error(
            f"Failed to get account info for {account['address']}: {e.message}"
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chain node unavailable",
        )

    return AccountInfoOut(
        address=Address(account["address"]).to_str(),
        account=AccountOut(balance=snapshot.balance, state=snapshot.state),
    )
