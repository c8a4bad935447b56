"""Global enums — must match DB CHECK constraints exactly.

Trade and offer statuses keep the storefront's Spanish labels; they
are persisted and shared with the existing frontend.
"""

from enum import Enum


class ListingStatus(str, Enum):
    ACTIVE = "Active"
    SOLD = "Sold"
    CANCELLED = "Cancelled"


class TradeStatus(str, Enum):
    PENDING = "Pendiente"
    COMPLETED = "Completado"
    CANCELLED = "Cancelado"


class OfferStatus(str, Enum):
    PENDING = "Pendiente"
    ACCEPTED = "Aceptado"
    REJECTED = "Rechazado"
    CANCELLED = "Cancelado"


class PrivacyLevel(str, Enum):
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class ResourceClass(str, Enum):
    """Independently configurable visibility scopes."""
    INVENTORY = "inventory"
    TRADE = "trade"
    MARKETPLACE = "marketplace"


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"


class WalletTransactionType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    COMMISSION = "commission"
    RELOAD = "reload"


class WalletTransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class EventType(str, Enum):
    LISTING_CREATED = "LISTING_CREATED"
    LISTING_CANCELLED = "LISTING_CANCELLED"
    LISTING_REPRICED = "LISTING_REPRICED"
    LISTING_SOLD = "LISTING_SOLD"
    TRADE_POSTED = "TRADE_POSTED"
    TRADE_COMPLETED = "TRADE_COMPLETED"
    TRADE_CANCELLED = "TRADE_CANCELLED"
    OFFER_POSTED = "OFFER_POSTED"
    OFFER_ACCEPTED = "OFFER_ACCEPTED"
    OFFER_REJECTED = "OFFER_REJECTED"
    OFFER_CANCELLED = "OFFER_CANCELLED"
    WALLET_RELOADED = "WALLET_RELOADED"
