from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Optional
from urllib.parse import quote_plus

from dotenv import find_dotenv, load_dotenv


LOGIN_URL = (
    "https://www.medstatsupplies.com/scs/checkout.ssp"
    "?is=login&login=T&fragment=login-register#login-register"
)
SEARCH_URL_TEMPLATE = "https://www.medstatsupplies.com/search?order=relevance:desc&keywords={keyword}"
DEFAULT_KEYWORD = "BLUESTAR"
DEFAULT_OUTPUT_DIR = "data"
DEFAULT_TOTAL_PAGES = 7
TIME_ZONE = "America/Los_Angeles"

EMAIL_ENV = "MEDSTAT_EMAIL"
PASSWORD_ENV = "MEDSTAT_PASSWORD"
OUTPUT_DIR_ENV = "MEDSTAT_OUTPUT_DIR"
HEADLESS_ENV = "MEDSTAT_HEADLESS"

# Timeouts in milliseconds, as Playwright expects them
LOGIN_TIMEOUT_MS = 20_000
GRID_TIMEOUT_MS = 30_000
PRODUCT_TIMEOUT_MS = 15_000
NAVIGATION_TIMEOUT_MS = 45_000
ACTION_TIMEOUT_MS = 30_000


class ConfigurationError(RuntimeError):
    """Raised when the run cannot start, e.g. credentials are missing."""


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Settings:
    email: str = ""
    password: str = field(default="", repr=False)
    keyword: str = DEFAULT_KEYWORD
    output_dir: str = DEFAULT_OUTPUT_DIR
    total_pages: int = DEFAULT_TOTAL_PAGES
    headless: bool = True
    login_url: str = LOGIN_URL
    time_zone: str = TIME_ZONE

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **overrides) -> "Settings":
        """Build settings from the process environment (and a .env file if present).

        Keyword overrides win over the environment; ``None`` overrides are ignored
        so argparse defaults can be passed straight through.
        """
        load_dotenv(dotenv_path or find_dotenv(usecwd=True))
        settings = cls(
            email=os.getenv(EMAIL_ENV, "").strip(),
            password=os.getenv(PASSWORD_ENV, ""),
            output_dir=os.getenv(OUTPUT_DIR_ENV) or DEFAULT_OUTPUT_DIR,
            headless=_env_flag(os.getenv(HEADLESS_ENV), True),
        )
        return replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    @property
    def search_url_base(self) -> str:
        return SEARCH_URL_TEMPLATE.format(keyword=quote_plus(self.keyword))

    def require_credentials(self) -> Credentials:
        if not self.email or not self.password:
            raise ConfigurationError(
                f"Please set {EMAIL_ENV} and {PASSWORD_ENV} in your environment or .env file."
            )
        return Credentials(email=self.email, password=self.password)
