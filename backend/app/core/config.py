from __future__ import annotations

from typing import List

from pydantic import AnyUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


ASAAS_PRODUCTION_URL = "https://api.asaas.com/v3"
ASAAS_SANDBOX_URL = "https://sandbox.asaas.com/api/v3"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Core
    DATABASE_URL: str
    ALLOWED_ORIGINS: str | None = "*"
    LOG_LEVEL: str = "INFO"
    APP_BASE_URL: str = "https://cuidly.com"

    # Auth
    AUTH_TOKEN_SECRET: str
    AUTH_TOKEN_TTL_SECONDS: int = 86400
    CRON_SECRET: str | None = None

    # Misc
    RUN_MIGRATIONS_ON_STARTUP: bool = False

    # Default administrator bootstrap
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None
    ADMIN_FULL_NAME: str | None = None

    # Payment gateway (Asaas)
    ASAAS_API_KEY: str | None = None
    ASAAS_ENVIRONMENT: str = "sandbox"
    ASAAS_ACCESS_TOKEN: str | None = None
    ASAAS_TIMEOUT_SECONDS: int = 30

    # OpenAI
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: AnyUrl | str | None = None
    OPENAI_ORG: str | None = None
    OPENAI_PROJECT: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_VISION_MODEL: str = "gpt-4o"
    OPENAI_TEMPERATURE: float = 0.3
    LLM_PROVIDER: str = "openai"

    # WhatsApp Cloud API
    WHATSAPP_API_URL: str = "https://graph.facebook.com/v19.0"
    WHATSAPP_PHONE_NUMBER_ID: str | None = None
    WHATSAPP_ACCESS_TOKEN: str | None = None

    # Transactional e-mail (Resend)
    RESEND_API_KEY: str | None = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "Cuidly <nao-responda@cuidly.com>"

    # Location services
    GEOCODING_PROVIDER: str = "nominatim"
    GOOGLE_MAPS_API_KEY: str | None = None
    NOMINATIM_BASE_URL: str = "https://nominatim.openstreetmap.org"
    VIACEP_BASE_URL: str = "https://viacep.com.br/ws"
    HTTP_TIMEOUT_SECONDS: int = 10

    @property
    def cors_origins(self) -> List[str]:
        if not self.ALLOWED_ORIGINS:
            return []
        raw = self.ALLOWED_ORIGINS
        if isinstance(raw, str):
            return [o.strip() for o in raw.split(",") if o.strip()]
        return list(raw)

    @property
    def is_asaas_production(self) -> bool:
        return self.ASAAS_ENVIRONMENT.lower() == "production"

    @property
    def asaas_base_url(self) -> str:
        return ASAAS_PRODUCTION_URL if self.is_asaas_production else ASAAS_SANDBOX_URL


settings = Settings()  # type: ignore[call-arg]
