import time
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
import uvicorn

from fastapi_tonproof.api.routing import api_router
from fastapi_tonproof.auth.tonconnect import TonProofVerifier
from fastapi_tonproof.settings import settings
from integrations.toncenter import MAINNET, TESTNET, ChainClients


@asynccontextmanager
async def lifespan(app: FastAPI):
    api_key = settings.toncenter_api_key
    app.state.chain_clients = ChainClients.create(
        api_key=api_key.get_secret_value() if api_key else None,
        endpoints={
            MAINNET: settings.toncenter_mainnet_url,
            TESTNET: settings.toncenter_testnet_url,
        },
        timeout=settings.chain_timeout,
    )
    app.state.proof_verifier = TonProofVerifier(
        settings.allowed_domains, settings.valid_auth_time
    )
    logger.info("Accepting ton_proof for domains: {}", settings.allowed_domains)
    try:
        yield
    finally:
        await app.state.chain_clients.aclose()


app = FastAPI(
    title="TonProof Auth API",
    version="1.0.0",
    lifespan=lifespan,
    servers=[
        {"url": f"http://{settings.host}:{settings.port}", "description": "Local"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.debug(
        "{} {} -> {} ({:.1f} ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Bad request",
            "errors": [
                {"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()
            ],
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(
        f"Unhandled error on {request.method} {request.url.path}"
    )
    content = {"detail": "An unexpected error occurred"}
    if settings.debug:
        content["trace"] = traceback.format_exception(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
    )


app.include_router(api_router, prefix="/api")


def run():
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
