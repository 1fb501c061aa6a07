"""
Structured logging for solwallet.

JSON logs with timestamp, event_type and address fields. Secrets are never logged.
"""

from solwallet.wallet_logging.logger import bind_address, get_logger

__all__ = ["bind_address", "get_logger"]
