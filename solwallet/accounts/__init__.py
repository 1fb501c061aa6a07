from solwallet.accounts.manager import AccountManager

__all__ = ["AccountManager"]
