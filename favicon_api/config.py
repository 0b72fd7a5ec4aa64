import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel

DEFAULT_USER_AGENT = "FaviconAPI/1.0 (+https://github.com/favicon-api/favicon-api)"
DEFAULT_FALLBACK_API_URL = "https://www.google.com/s2/favicons?domain={domain}&sz={size}"
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class AppConfig(BaseModel):
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: int = 5000  # milliseconds
    max_image_size: int = MAX_IMAGE_SIZE
    use_fallback_api: bool = True
    fallback_api_url: str = DEFAULT_FALLBACK_API_URL
    default_image_path: Optional[str] = None
    default_icon_size: int = 64

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout / 1000

    @classmethod
    def from_env(cls) -> "AppConfig":
        values = {}
        if user_agent := os.getenv("USER_AGENT"):
            values["user_agent"] = user_agent
        if timeout := os.getenv("REQUEST_TIMEOUT"):
            values["request_timeout"] = int(timeout)
        if max_size := os.getenv("MAX_IMAGE_SIZE"):
            values["max_image_size"] = int(max_size)
        if use_fallback := os.getenv("USE_FALLBACK_API"):
            values["use_fallback_api"] = _env_bool(use_fallback)
        if fallback_url := os.getenv("FALLBACK_API_URL"):
            values["fallback_api_url"] = fallback_url
        if default_path := os.getenv("DEFAULT_IMAGE_PATH"):
            values["default_image_path"] = default_path
        if icon_size := os.getenv("DEFAULT_ICON_SIZE"):
            values["default_icon_size"] = int(icon_size)
        return cls(**values)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig.from_env()
