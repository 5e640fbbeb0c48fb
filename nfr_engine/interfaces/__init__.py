"""Protocol interfaces for the external services the engine consumes."""
from .price_feed import PriceFeed
from .token import SyntheticToken, Token

__all__ = ["PriceFeed", "SyntheticToken", "Token"]
