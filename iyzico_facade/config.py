"""Settings for the iyzico facade, loaded from the environment or ``.env``."""

from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

SANDBOX_BASE_URL = "sandbox-api.iyzipay.com"
LIVE_BASE_URL = "api.iyzipay.com"


class IyzicoSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="IYZICO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: Optional[str] = None
    secret_key: Optional[SecretStr] = None
    base_url: Optional[str] = None
    live: bool = False
    locale: str = "tr"
    conversation_id: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("base_url", mode="before")
    @classmethod
    def strip_scheme(cls, v):
        """The SDK opens an HTTPS connection to a bare host name."""
        if isinstance(v, str):
            for prefix in ("https://", "http://"):
                if v.startswith(prefix):
                    v = v[len(prefix):]
            return v.rstrip("/")
        return v

    @property
    def host(self) -> str:
        """API host: ``base_url`` if set, otherwise live or sandbox by ``live``."""
        if self.base_url:
            return self.base_url
        return LIVE_BASE_URL if self.live else SANDBOX_BASE_URL

    @property
    def secret(self) -> str:
        """Plain secret key; raises if it is not configured."""
        if self.secret_key is None or not self.secret_key.get_secret_value():
            raise ConfigurationError("IYZICO_SECRET_KEY")
        return self.secret_key.get_secret_value()

    def to_options(self) -> Dict[str, Any]:
        """Options dictionary expected by every iyzipay resource call."""
        if not self.api_key:
            raise ConfigurationError("IYZICO_API_KEY")
        return {
            "api_key": self.api_key,
            "secret_key": self.secret,
            "base_url": self.host,
        }


@lru_cache
def get_settings() -> IyzicoSettings:
    return IyzicoSettings()
