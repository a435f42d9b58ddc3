from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


def normalize_domain(url: str) -> str:
    """Превращает origin фронтенда в домен, который кошелёк кладёт в ton_proof."""
    for scheme in ("https://", "http://"):
        if url.startswith(scheme):
            url = url[len(scheme) :]
            break
    return url.rstrip("/")


class Settings(BaseSettings):
    app_name: str = "tonproof_site_backend"
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    frontend_url: str = "http://localhost:3000"
    extra_allowed_domains: list[str] = Field(default_factory=list)
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    jwt_secret: SecretStr
    jwt_alg: str = "HS256"
    jwt_payload_ttl: int = 15 * 60  # 15 минут
    jwt_access_ttl: int = 3600  # 1 час

    valid_auth_time: int = 15 * 60  # окно валидности ton_proof

    toncenter_api_key: SecretStr | None = None
    toncenter_mainnet_url: str = "https://toncenter.com/api/v3"
    toncenter_testnet_url: str = "https://testnet.toncenter.com/api/v3"
    chain_timeout: float = 10.0
    chain_retry_attempts: int = 3
    chain_retry_delay_ms: int = 1000

    @property
    def allowed_domains(self) -> list[str]:
        domains = [normalize_domain(self.frontend_url)]
        for extra in self.extra_allowed_domains:
            domain = normalize_domain(extra)
            if domain not in domains:
                domains.append(domain)
        return domains

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
