"""
Token Ledger

A fixed-supply fungible token ledger with overflow-checked balances,
spender allowances, and an injectable event sink for Transfer and Approval
notifications.
"""

__version__ = "1.0.0"
