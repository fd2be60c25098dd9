"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, fwdctl.toml only contains overrides.
A fresh workspace needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from fwdctl.config.discovery import DEFAULT_DATABASE_PATH

# --- fwdctl.toml sections ---


class DatabaseConfig(BaseModel):
    """[database] section.  Relative paths resolve against the workspace root."""

    model_config = {"frozen": True}

    path: str = DEFAULT_DATABASE_PATH


class BatchConfig(BaseModel):
    """[batch] section."""

    model_config = {"frozen": True}

    max_batch_size: int = Field(default=1000, ge=1, le=1000)


class SearchConfig(BaseModel):
    """[search] section."""

    model_config = {"frozen": True}

    default_page_size: int = Field(default=50, ge=1, le=100)
    max_page_size: int = Field(default=100, ge=1, le=100)
    suggestion_limit: int = Field(default=10, ge=1, le=50)

    @model_validator(mode="after")
    def _default_within_max(self) -> SearchConfig:
        if self.default_page_size > self.max_page_size:
            msg = "default_page_size cannot exceed max_page_size"
            raise ValueError(msg)
        return self
