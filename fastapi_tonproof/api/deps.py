from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fastapi_tonproof.auth.jwt_utils import (
    ACCESS_TOKEN_TYPE,
    AuthToken,
    decode_auth_token,
    verify_token,
)
from fastapi_tonproof.auth.tonconnect import TonProofVerifier
from fastapi_tonproof.settings import settings
from integrations.toncenter import ChainClients

ACCESS_TOKEN_COOKIE = "accessToken"

security = HTTPBearer(auto_error=False)


def get_chain_clients(request: Request) -> ChainClients:
    return request.app.state.chain_clients


def get_proof_verifier(request: Request) -> TonProofVerifier:
    return request.app.state.proof_verifier


def extract_access_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    """Токен берётся из cookie `accessToken`, иначе из заголовка `Authorization: Bearer`."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if credentials and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


def current_account(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthToken:
    token = extract_access_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided"
        )
    secret = settings.jwt_secret.get_secret_value()
    if not verify_token(token, secret, settings.jwt_alg, ACCESS_TOKEN_TYPE):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )
    return decode_auth_token(token, secret, settings.jwt_alg)
