"""Collateralized debt position engine for the NFR synthetic dollar."""
from .engine import NFREngine

__all__ = ["NFREngine"]
