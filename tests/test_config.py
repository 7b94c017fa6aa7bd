"""Tests for tern.config — RouterConfig frozen dataclass."""

import pytest

from tern.config import RouterConfig


class TestRouterConfig:
    def test_defaults(self) -> None:
        cfg = RouterConfig()

        assert cfg.catch_all_pattern == ".*"
        assert cfg.not_found_status == 404
        assert cfg.method_not_allowed_status is None
        assert cfg.default_status == 204
        assert cfg.max_content_length == 16 * 1024 * 1024
        assert cfg.offload_dispatch is True

    def test_override(self) -> None:
        cfg = RouterConfig(method_not_allowed_status=405, offload_dispatch=False)

        assert cfg.method_not_allowed_status == 405
        assert cfg.offload_dispatch is False

    def test_frozen(self) -> None:
        cfg = RouterConfig()

        with pytest.raises(AttributeError):
            cfg.not_found_status = 410  # type: ignore[misc]
