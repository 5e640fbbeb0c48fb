"""Price oracle adapter and feed implementations."""
from .oracle_lib import OracleLib
from .pyth import PythHermesClient, PythPriceFeed
from .static import StaticPriceFeed

__all__ = ["OracleLib", "PythHermesClient", "PythPriceFeed", "StaticPriceFeed"]
