from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from integrations.toncenter.types import AccountBalance, AccountState


class TonNetwork(str, Enum):
    """Идентификаторы сетей TON в терминах TonConnect."""

    MAINNET = "-239"
    TESTNET = "-3"


class TonProofDomain(BaseModel):
    """Домен, для которого подписывается TonConnect-доказательство."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"examples": [{"lengthBytes": 14, "value": "localhost:3000"}]},
    )

    lengthBytes: int = Field(..., ge=0, description="Длина значения домена в байтах.")
    value: str = Field(..., description="Строковое значение домена.")


class TonProofData(BaseModel):
    """Данные доказательства TonConnect."""

    model_config = ConfigDict(extra="forbid")

    timestamp: int = Field(..., ge=0, description="UNIX-время подписи.")
    domain: TonProofDomain = Field(..., description="Информация о домене.")
    signature: str = Field(..., description="Подпись кошелька (base64).")
    payload: str = Field(
        ...,
        description="Подписанный payload: токен, выданный `/auth/generate-payload`.",
    )
    state_init: str = Field(..., description="StateInit кошелька (base64 BoC).")


class CheckProofIn(BaseModel):
    """Запрос на проверку TonConnect-доказательства."""

    address: str = Field(..., description="Адрес кошелька (raw или user-friendly).")
    network: TonNetwork = Field(..., description="Сеть: `-239` mainnet, `-3` testnet.")
    public_key: str = Field(..., description="Публичный ключ кошелька (hex).")
    proof: TonProofData = Field(..., description="Доказательство TonConnect.")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "address": "0:abcd1234ef...",
                    "network": "-239",
                    "public_key": "ab12cd34...",
                    "proof": {
                        "timestamp": 1710000000,
                        "domain": {"lengthBytes": 14, "value": "localhost:3000"},
                        "signature": "base64-строка подписи",
                        "payload": "eyJhbGciOi...",
                        "state_init": "te6cckEC...",
                    },
                }
            ]
        },
    )


class TokenOut(BaseModel):
    """Ответ с выданным JWT (payload-токен или сессионный токен)."""

    token: str = Field(..., description="Подписанный JWT.")

    model_config = {"json_schema_extra": {"examples": [{"token": "eyJhbGciOi..."}]}}


class AccountOut(BaseModel):
    balance: AccountBalance = Field(
        ..., description="Баланс: нанотоны и дополнительные валюты."
    )
    state: AccountState = Field(
        ..., description="Состояние контракта: active, uninit, frozen."
    )


class AccountInfoOut(BaseModel):
    """Снимок состояния аккаунта авторизованного кошелька."""

    address: str = Field(..., description="Адрес кошелька (user-friendly).")
    account: AccountOut
