"""Token service implementations."""
from .memory import InMemoryToken, SyntheticNfrToken

__all__ = ["InMemoryToken", "SyntheticNfrToken"]
