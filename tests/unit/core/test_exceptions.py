"""Tests for the Crypto Recovery exception hierarchy."""

from __future__ import annotations

import pytest

from cryptorecovery.core.exceptions import (
    ConfigError,
    DataCorruptionError,
    InvalidOperationError,
    PriceServiceError,
    RateLimitError,
    RecoveryError,
)


class TestExceptionHierarchy:
    """Verify inheritance chain so callers can catch at the right level."""

    def test_base_is_exception(self) -> None:
        assert issubclass(RecoveryError, Exception)

    @pytest.mark.parametrize(
        "exc_cls",
        [ConfigError, PriceServiceError, DataCorruptionError, InvalidOperationError],
    )
    def test_direct_children_of_base(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, RecoveryError)

    def test_rate_limit_is_service_error(self) -> None:
        assert issubclass(RateLimitError, PriceServiceError)
        with pytest.raises(PriceServiceError):
            raise RateLimitError("429")

    def test_message_preserved(self) -> None:
        assert str(ConfigError("bad settings")) == "bad settings"

    def test_not_caught_by_sibling(self) -> None:
        with pytest.raises(InvalidOperationError):
            try:
                raise InvalidOperationError("level 9 not affordable")
            except PriceServiceError:
                pytest.fail("InvalidOperationError should not be caught by PriceServiceError")
