from __future__ import annotations

import pytest

from listing_optimizer.services.errors import (
    FetchFailedError,
    GenerationFailedError,
    InvalidAsinError,
    MalformedGenerationError,
    NetworkTimeoutError,
    OperationCancelledError,
    ProductNotFoundError,
    RateLimitedError,
    ServiceError,
)
from listing_optimizer.services.ids import normalize_asin


class TestServiceError:
    def test_base_exception(self) -> None:
        error = ServiceError("Base service error")
        assert str(error) == "Base service error"
        assert isinstance(error, Exception)


class TestNetworkTimeoutError:
    def test_timeout_with_url_and_seconds(self) -> None:
        error = NetworkTimeoutError("https://www.amazon.com/dp/B000TEST01", 15.0)
        assert "https://www.amazon.com/dp/B000TEST01" in str(error)
        assert "15" in str(error)
        assert error.url == "https://www.amazon.com/dp/B000TEST01"
        assert error.timeout_seconds == 15.0


class TestExceptionHierarchy:
    def test_all_errors_inherit_from_service_error(self) -> None:
        assert issubclass(InvalidAsinError, ServiceError)
        assert issubclass(ProductNotFoundError, ServiceError)
        assert issubclass(FetchFailedError, ServiceError)
        assert issubclass(RateLimitedError, ServiceError)
        assert issubclass(GenerationFailedError, ServiceError)
        assert issubclass(MalformedGenerationError, GenerationFailedError)
        assert issubclass(NetworkTimeoutError, ServiceError)
        assert issubclass(OperationCancelledError, ServiceError)


class TestNormalizeAsin:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("B08XYZ1234", "B08XYZ1234"),
            ("  b08xyz1234\n", "B08XYZ1234"),
            ("0143127748", "0143127748"),
            ("https://www.amazon.com/dp/B08XYZ1234", "B08XYZ1234"),
            ("https://www.amazon.com/Some-Product/dp/B08XYZ1234/ref=sr_1_1?keywords=x", "B08XYZ1234"),
            ("https://www.amazon.com/gp/product/B08XYZ1234?th=1", "B08XYZ1234"),
        ],
    )
    def test_valid(self, raw: str, expected: str) -> None:
        assert normalize_asin(raw) == expected

    @pytest.mark.parametrize("raw", ["", "B08XYZ123", "B08XYZ12345", "B08-XYZ-12", "https://example.com/"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidAsinError):
            normalize_asin(raw)
