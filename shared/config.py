import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: Optional[str] = None) -> str:
    val = os.getenv(name, default)
    if val is None or val.strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return val.strip()


def _parse_origins(raw: str) -> list[str]:
    raw = (raw or "").strip()
    if not raw or raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass
class Settings:
    database_url: str = "sqlite:///./avsar.db"
    auth_service_url: str = "http://auth-service:8001"
    service_role_key: str = ""

    # OpenAI-compatible gateway (OpenRouter by default)
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "google/gemini-2.5-flash"
    openrouter_site_url: str = "http://localhost"
    openrouter_app_name: str = "avsar-guidance"
    llm_timeout: float = 60.0

    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_get_env("DATABASE_URL", cls.database_url),
            auth_service_url=_get_env("AUTH_SERVICE_URL", cls.auth_service_url).rstrip("/"),
            service_role_key=_get_env("SERVICE_ROLE_KEY"),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", "").strip(),
            openrouter_base_url=_get_env("OPENROUTER_BASE_URL", cls.openrouter_base_url).rstrip("/"),
            openrouter_model=_get_env("OPENROUTER_MODEL", cls.openrouter_model),
            openrouter_site_url=_get_env("OPENROUTER_SITE_URL", cls.openrouter_site_url),
            openrouter_app_name=_get_env("OPENROUTER_APP_NAME", cls.openrouter_app_name),
            llm_timeout=float(_get_env("LLM_TIMEOUT", str(cls.llm_timeout))),
            cors_origins=_parse_origins(os.getenv("CORS_ORIGINS", "*")),
        )
