"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Validation
  2xxx: Wallet
  3xxx: Inventory / Privacy
  4xxx: Marketplace
  5xxx: Trade
  9xxx: System

Every error also carries a machine-readable `reason` string that callers
switch on, and optional `details` rendered into the response `data` field.
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        reason: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.reason = reason
        self.details = details
        super().__init__(message)


# --- 1xxx: Validation ---

class InvalidIdentifierError(AppError):
    def __init__(self, field: str) -> None:
        super().__init__(1001, f"Invalid identifier: {field}", 400, "BAD_REQUEST")


class InvalidPriceError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1002, f"Invalid price: {detail}", 400, "INVALID_PRICE")


class InvalidAmountError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1003, f"Invalid amount: {detail}", 400, "INVALID_AMOUNT")


class InvalidPrivacySettingsError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1004, f"Invalid privacy settings: {detail}", 400, "BAD_REQUEST")


class MissingIdempotencyKeyError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "An idempotency key is required", 400, "BAD_REQUEST")


# --- 2xxx: Wallet ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required} cents, available {available} cents",
            422,
            "INSUFFICIENT_FUNDS",
            {"required_cents": required, "available_cents": available},
        )


class DailyLimitExceededError(AppError):
    def __init__(self, limit: int, spent: int) -> None:
        remaining = max(limit - spent, 0)
        super().__init__(
            2002,
            f"Daily purchase limit reached: {remaining} cents remaining today",
            422,
            "DAILY_LIMIT_EXCEEDED",
            {"limit_cents": limit, "spent_cents": spent, "remaining_cents": remaining},
        )


class AlreadyProcessedError(AppError):
    def __init__(self, idempotency_key: str) -> None:
        super().__init__(
            2003, f"Operation already processed: {idempotency_key}", 409, "ALREADY_PROCESSED"
        )


class ReloadLimitExceededError(AppError):
    def __init__(self, detail: str, limit: int, current: int) -> None:
        super().__init__(
            2004,
            f"Reload limit exceeded: {detail}",
            422,
            "RELOAD_LIMIT_EXCEEDED",
            {"limit_cents": limit, "current_cents": current},
        )


# --- 3xxx: Inventory / Privacy ---

class ItemNotFoundError(AppError):
    def __init__(self, item_id: str) -> None:
        super().__init__(3001, f"Item not found: {item_id}", 404, "NOT_FOUND")


class ItemNotOwnedError(AppError):
    def __init__(self, item_id: str) -> None:
        super().__init__(3002, f"Item {item_id} is not owned by the caller", 403, "NOT_OWNER")


class ItemLockedError(AppError):
    def __init__(self, item_id: str) -> None:
        super().__init__(
            3003, f"Item {item_id} is already listed or in a trade", 409, "ITEM_LOCKED"
        )


class ItemNotMarketableError(AppError):
    def __init__(self, item_id: str) -> None:
        super().__init__(3004, f"Item {item_id} cannot be sold", 422, "ITEM_NOT_MARKETABLE")


class ItemNotTradeableError(AppError):
    def __init__(self, item_id: str) -> None:
        super().__init__(3005, f"Item {item_id} cannot be traded", 422, "ITEM_NOT_TRADEABLE")


class PrivacyRestrictedError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(3006, message, 403, "PRIVACY_RESTRICTED")


# --- 4xxx: Marketplace ---

class ListingNotFoundError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(4001, f"Listing not found: {listing_id}", 404, "NOT_FOUND")


class ListingNotAvailableError(AppError):
    def __init__(self) -> None:
        super().__init__(
            4002,
            "This item is no longer available: it was sold or withdrawn",
            409,
            "LISTING_NOT_AVAILABLE",
        )


class NotListingSellerError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(4003, f"Listing {listing_id} belongs to another seller", 403, "NOT_SELLER")


class SelfPurchaseError(AppError):
    def __init__(self) -> None:
        super().__init__(4004, "You cannot buy your own item", 422, "CANNOT_BUY_OWN_ITEM")


class MaxListingsReachedError(AppError):
    def __init__(self, current: int, limit: int) -> None:
        super().__init__(
            4005,
            f"Active listing limit reached ({current}/{limit})",
            422,
            "MAX_LISTINGS_REACHED",
            {"current": current, "limit": limit},
        )


class ListingNotActiveError(AppError):
    def __init__(self, listing_id: str, status: str) -> None:
        super().__init__(
            4006, f"Listing {listing_id} in status {status} cannot be modified", 409,
            "LISTING_NOT_ACTIVE",
        )


# --- 5xxx: Trade ---

class TradeNotFoundError(AppError):
    def __init__(self, trade_id: str) -> None:
        super().__init__(5001, f"Trade not found: {trade_id}", 404, "NOT_FOUND")


class TradeNotPendingError(AppError):
    def __init__(self, trade_id: str, status: str) -> None:
        super().__init__(
            5002, f"Trade {trade_id} in status {status} is closed", 409, "TRADE_NOT_PENDING"
        )


class OfferNotFoundError(AppError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(5003, f"Trade offer not found: {offer_id}", 404, "NOT_FOUND")


class OfferNotPendingError(AppError):
    def __init__(self, offer_id: str, status: str) -> None:
        super().__init__(
            5004, f"Trade offer {offer_id} in status {status} is already resolved", 409,
            "OFFER_NOT_PENDING",
        )


class MaxTradesReachedError(AppError):
    def __init__(self, current: int, limit: int) -> None:
        super().__init__(
            5005,
            f"Active trade limit reached ({current}/{limit})",
            422,
            "MAX_TRADES_REACHED",
            {"current": current, "limit": limit},
        )


class MaxOffersReachedError(AppError):
    def __init__(self, current: int, limit: int) -> None:
        super().__init__(
            5006,
            f"This trade already has the maximum number of offers ({current}/{limit})",
            422,
            "MAX_OFFERS_REACHED",
            {"current": current, "limit": limit},
        )


class DuplicateOfferError(AppError):
    def __init__(self, trade_id: str, item_id: str) -> None:
        super().__init__(
            5007, f"Item {item_id} is already offered on trade {trade_id}", 409,
            "DUPLICATE_OFFER",
        )


class NotTradeOwnerError(AppError):
    def __init__(self, trade_id: str) -> None:
        super().__init__(5008, f"Trade {trade_id} belongs to another user", 403, "NOT_TRADE_OWNER")


class NotOfferOwnerError(AppError):
    def __init__(self, offer_id: str) -> None:
        super().__init__(
            5009, f"Trade offer {offer_id} belongs to another user", 403, "NOT_OFFER_OWNER"
        )


class SelfOfferError(AppError):
    def __init__(self) -> None:
        super().__init__(
            5010, "You cannot make an offer on your own trade", 422, "CANNOT_OFFER_OWN_TRADE"
        )


class TradeExpiredError(AppError):
    def __init__(self, trade_id: str) -> None:
        super().__init__(5011, f"Trade {trade_id} has expired", 409, "TRADE_EXPIRED")


class InvalidTransitionError(AppError):
    def __init__(self, entity: str, current: str, target: str) -> None:
        super().__init__(
            5012, f"{entity} cannot move from {current} to {target}", 409, "CONFLICT"
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429, "RATE_LIMITED")


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, "INTERNAL_ERROR")


class ConflictError(AppError):
    def __init__(self, detail: str = "Concurrent update conflict, please retry") -> None:
        super().__init__(9003, detail, 409, "CONFLICT")


class OperationInProgressError(AppError):
    def __init__(self) -> None:
        super().__init__(
            9004, "This operation is already being processed", 409, "OPERATION_IN_PROGRESS"
        )


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(9005, "Invalid or expired token", 401, "UNAUTHENTICATED")
