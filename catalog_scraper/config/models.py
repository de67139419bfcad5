"""Pydantic models describing a scrape run."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BASE_URL = "https://mms.mckesson.com"
DEFAULT_SEARCH_PATH = "/catalog?query={query}&sort=Mf"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ScraperConfig(BaseModel):
    """Read-only configuration shared by every component of a run."""

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    search_path: str = DEFAULT_SEARCH_PATH
    input_path: Path = Field(default=Path("mpn_list.txt"))
    output_path: Path = Field(default=Path("output/products.json"))
    workers: int = Field(default=1, ge=1)
    delay_ms: int = Field(default=1500, ge=0)
    max_retries: int = Field(default=3, ge=1)
    # 0 disables the per-request timeout
    timeout_ms: int = Field(default=30000, ge=0)
    retry_delay_ms: int = Field(default=1000, ge=0)
    resume: bool = False
    limit: int | None = Field(default=None, ge=0)
    start_index: int | None = Field(default=None, ge=0)
    verbose: bool = False
    user_agent: str = USER_AGENT

    @field_validator("base_url")
    @classmethod
    def _normalise_base_url(cls, value: str) -> str:
        text = value.strip()
        if not text.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return text.rstrip("/")

    @field_validator("search_path")
    @classmethod
    def _validate_search_path(cls, value: str) -> str:
        if "{query}" not in value:
            raise ValueError("search_path must contain a {query} placeholder")
        return value if value.startswith("/") else f"/{value}"

    @field_validator("input_path", "output_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser()

    @property
    def incremental_log_path(self) -> Path:
        """Append-only log living next to the snapshot (``products.json`` -> ``products.jsonl``)."""

        return self.output_path.with_suffix(".jsonl")

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout_ms == 0:
            return None
        return self.timeout_ms / 1000

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000

    def snapshot(self) -> dict[str, Any]:
        """Subset of settings recorded in the final output file."""

        return {
            "baseUrl": self.base_url,
            "workers": self.workers,
            "delayMs": self.delay_ms,
            "maxRetries": self.max_retries,
        }


__all__ = ["DEFAULT_BASE_URL", "DEFAULT_SEARCH_PATH", "ScraperConfig", "USER_AGENT"]
