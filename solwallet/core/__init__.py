"""
Core: errors, results, shared data models and cross-cutting helpers.

Used by the account manager, the transfer engines and the staking manager.
"""
