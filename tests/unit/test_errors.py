"""Tests for mk_common.errors and mk_common.response."""

from src.mk_common.errors import (
    AppError,
    DailyLimitExceededError,
    InsufficientFundsError,
    ListingNotAvailableError,
    MaxListingsReachedError,
    MaxOffersReachedError,
    PrivacyRestrictedError,
    SelfPurchaseError,
)
from src.mk_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.reason == "INTERNAL_ERROR"
        assert err.details is None

    def test_custom_http_status(self) -> None:
        err = AppError(code=1001, message="Bad id", http_status=400, reason="BAD_REQUEST")
        assert err.http_status == 400
        assert err.reason == "BAD_REQUEST"

    def test_is_exception(self) -> None:
        err = AppError(code=1001, message="test")
        assert isinstance(err, Exception)
        assert str(err) == "test"


class TestSpecificErrors:
    def test_insufficient_funds_carries_amounts(self) -> None:
        err = InsufficientFundsError(required=6500, available=3000)
        assert err.code == 2001
        assert err.http_status == 422
        assert err.reason == "INSUFFICIENT_FUNDS"
        assert err.details == {"required_cents": 6500, "available_cents": 3000}

    def test_daily_limit_reports_remaining(self) -> None:
        err = DailyLimitExceededError(limit=200000, spent=198000)
        assert err.reason == "DAILY_LIMIT_EXCEEDED"
        assert err.details is not None
        assert err.details["remaining_cents"] == 2000
        assert err.details["spent_cents"] == 198000

    def test_daily_limit_remaining_never_negative(self) -> None:
        err = DailyLimitExceededError(limit=1000, spent=5000)
        assert err.details is not None
        assert err.details["remaining_cents"] == 0

    def test_quota_errors_carry_current_and_limit(self) -> None:
        listings = MaxListingsReachedError(current=10, limit=10)
        offers = MaxOffersReachedError(current=20, limit=20)
        assert listings.reason == "MAX_LISTINGS_REACHED"
        assert listings.details == {"current": 10, "limit": 10}
        assert offers.reason == "MAX_OFFERS_REACHED"
        assert offers.details == {"current": 20, "limit": 20}

    def test_listing_not_available(self) -> None:
        err = ListingNotAvailableError()
        assert err.code == 4002
        assert err.http_status == 409
        assert err.reason == "LISTING_NOT_AVAILABLE"

    def test_self_purchase(self) -> None:
        err = SelfPurchaseError()
        assert err.reason == "CANNOT_BUY_OWN_ITEM"
        assert err.http_status == 422

    def test_privacy_restricted_keeps_message(self) -> None:
        err = PrivacyRestrictedError("This inventory is private.")
        assert err.http_status == 403
        assert err.reason == "PRIVACY_RESTRICTED"
        assert err.message == "This inventory is private."


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"balance": 100})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.reason is None
        assert resp.data == {"balance": 100}
        assert resp.request_id.startswith("req_")

    def test_error_puts_details_in_data(self) -> None:
        resp = error_response(4005, "limit", "MAX_LISTINGS_REACHED", {"current": 10, "limit": 10})
        assert resp.code == 4005
        assert resp.reason == "MAX_LISTINGS_REACHED"
        assert resp.data == {"current": 10, "limit": 10}

    def test_error_without_details(self) -> None:
        resp = error_response(9002, "boom")
        assert resp.data is None
        assert resp.reason is None

    def test_timestamp_is_iso(self) -> None:
        resp = ApiResponse()
        assert "T" in resp.timestamp
