"""Trade record storage."""
from .mirror import TradeMirror
from .trades import TradeStore

__all__ = ["TradeStore", "TradeMirror"]
