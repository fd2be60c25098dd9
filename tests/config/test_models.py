"""Tests for the configuration section models."""

import pytest
from pydantic import ValidationError

from fwdctl.config.models import BatchConfig, DatabaseConfig, SearchConfig


class TestDefaults:
    def test_section_defaults(self) -> None:
        assert DatabaseConfig().path == ".fwdctl/fwdctl.db"
        assert BatchConfig().max_batch_size == 1000
        search = SearchConfig()
        assert search.default_page_size == 50
        assert search.max_page_size == 100
        assert search.suggestion_limit == 10


class TestBounds:
    def test_batch_cap_cannot_be_raised(self) -> None:
        with pytest.raises(ValidationError):
            BatchConfig(max_batch_size=1001)

    def test_page_size_cap(self) -> None:
        with pytest.raises(ValidationError):
            SearchConfig(max_page_size=500)

    def test_default_within_max(self) -> None:
        with pytest.raises(ValidationError, match="default_page_size"):
            SearchConfig(default_page_size=80, max_page_size=40)

    def test_lower_limits_allowed(self) -> None:
        cfg = SearchConfig(default_page_size=10, max_page_size=20)
        assert cfg.max_page_size == 20
