"""Collaborators the cart state machine calls out to."""
from .analytics import AnalyticsEvents, CartAnalytics
from .checkout_info import CheckoutInfoService
from .promo import PromoCodeService
from .stock import StockCheckClient

__all__ = [
    "AnalyticsEvents",
    "CartAnalytics",
    "CheckoutInfoService",
    "PromoCodeService",
    "StockCheckClient",
]
