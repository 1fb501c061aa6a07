"""
Network client adapter: the only place that talks to the ledger.

LedgerClient defines the operations the wallet core needs; SolanaRpcClient
implements them over solana-py's AsyncClient.
"""

from solwallet.network.client import LedgerClient
from solwallet.network.models import SignatureInfo

__all__ = ["LedgerClient", "SignatureInfo"]
