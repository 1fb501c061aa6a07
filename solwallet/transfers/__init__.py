from solwallet.transfers.engine import TransferEngine

__all__ = ["TransferEngine"]
