import json
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

load_dotenv()

DEFAULT_CACHE_NAMESPACE = "judgeme-review-manager"


class ConfigurationError(Exception):
    """Credentials or settings are missing or malformed."""


class JudgemeCredentials(BaseModel):
    """Shop domain plus the two Judge.me API tokens."""

    shop_domain: str = Field(min_length=1, alias="shopDomain")
    public_api_token: str = Field(min_length=1, alias="publicApiToken")
    private_api_token: str = Field(min_length=1, alias="privateApiToken")

    model_config = {"populate_by_name": True, "frozen": True}


class Settings(BaseModel):
    # Judge.me Configuration
    judgeme_shop_domain: str = Field(default="", alias="JUDGEME_SHOP_DOMAIN")
    judgeme_public_api_token: str = Field(default="", alias="JUDGEME_PUBLIC_API_TOKEN")
    judgeme_private_api_token: str = Field(
        default="", alias="JUDGEME_PRIVATE_API_TOKEN"
    )
    judgeme_config_path: str | None = Field(default=None, alias="JUDGEME_CONFIG_PATH")
    judgeme_base_url: str = Field(
        default="https://judge.me/api/v1", alias="JUDGEME_BASE_URL"
    )
    judgeme_request_timeout: float = Field(default=30.0, alias="JUDGEME_REQUEST_TIMEOUT")

    # Cache Configuration
    cache_namespace: str = Field(
        default=DEFAULT_CACHE_NAMESPACE, alias="CACHE_NAMESPACE"
    )
    cache_max_size: int | None = Field(default=1000, alias="CACHE_MAX_SIZE")
    cache_debug: bool = Field(default=False, alias="CACHE_DEBUG")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


def load_settings() -> Settings:
    """Build Settings from the process environment (after .env is loaded)."""
    try:
        return Settings.model_validate(dict(os.environ))
    except ValidationError as e:
        invalid = ", ".join(
            f"{err['loc'][0]} ({err['msg']})" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid settings: {invalid}") from e


def load_credentials(settings: Settings) -> JudgemeCredentials:
    """
    Resolve Judge.me credentials.

    A JSON config file (``{"judgeme": {"shopDomain": ..., ...}}``) named by
    JUDGEME_CONFIG_PATH wins over the individual environment variables.
    """
    try:
        if settings.judgeme_config_path:
            path = Path(settings.judgeme_config_path)
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
            section = raw.get("judgeme", {}) if isinstance(raw, dict) else {}
            return JudgemeCredentials.model_validate(section)

        return JudgemeCredentials(
            shop_domain=settings.judgeme_shop_domain,
            public_api_token=settings.judgeme_public_api_token,
            private_api_token=settings.judgeme_private_api_token,
        )
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]) for err in e.errors())
        raise ConfigurationError(f"Missing Judge.me credentials: {missing}") from e
