"""Position manager, ledgers and health factor math."""
from .engine import NFREngine
from .ledger import Ledger

__all__ = ["Ledger", "NFREngine"]
