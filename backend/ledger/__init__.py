# ledger/__init__.py
"""
General ledger for Mimhaad Finance.

Chart of accounts, double-entry journal posting and reversal, trial
balance, and float-to-GL reconciliation. All mutations go through
ledger.commands (posting engine), ledger.builder and ledger.float_sync.
"""
