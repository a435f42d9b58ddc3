import time
from typing import TypedDict

import jwt
from fastapi import HTTPException, status

PAYLOAD_TOKEN_TYPE = "payload"
ACCESS_TOKEN_TYPE = "access"


class AuthToken(TypedDict):
    address: str
    network: str


def now_ts() -> int:
    return int(time.time())


def create_payload_token(payload: str, secret: str, alg: str, ttl_sec: int) -> str:
    iat = now_ts()
    return jwt.encode(
        {
            "payload": payload,
            "iat": iat,
            "exp": iat + ttl_sec,
            "type": PAYLOAD_TOKEN_TYPE,
        },
        secret,
        algorithm=alg,
    )


def create_auth_token(
    address: str, network: str, secret: str, alg: str, ttl_sec: int
) -> str:
    iat = now_ts()
    return jwt.encode(
        {
            "address": address,
            "network": network,
            "iat": iat,
            "exp": iat + ttl_sec,
            "type": ACCESS_TOKEN_TYPE,
        },
        secret,
        algorithm=alg,
    )


def verify_token(
    token: str, secret: str, alg: str, token_type: str | None = None
) -> bool:
    """
    Проверяет подпись и срок жизни токена.

    Никогда не бросает исключений: битая структура, чужая подпись или
    истёкший `exp` означают `False`.

    :param token_type: Если задан, claim `type` обязан с ним совпадать.
    """
    try:
        payload = jwt.decode(
            token, secret, algorithms=[alg], options={"require": ["exp", "iat"]}
        )
    except jwt.PyJWTError:
        return False
    return token_type is None or payload.get("type") == token_type


def decode_any(token: str, secret: str, alg: str) -> dict:
    try:
        return jwt.decode(token, secret, algorithms=[alg])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired"
        )
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )


def decode_auth_token(token: str, secret: str, alg: str) -> AuthToken:
    payload = decode_any(token, secret, alg)
    if (
        payload.get("type") != ACCESS_TOKEN_TYPE
        or not payload.get("address")
        or not payload.get("network")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload"
        )
    return AuthToken(address=payload["address"], network=payload["network"])
