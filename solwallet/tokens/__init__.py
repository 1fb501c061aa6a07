from solwallet.tokens.engine import UNKNOWN_SYMBOL, TokenTransferEngine

__all__ = ["UNKNOWN_SYMBOL", "TokenTransferEngine"]
