from reward_ledger.economy.credits.service import CreditLedgerService, verify_ledger_chain

__all__ = ["CreditLedgerService", "verify_ledger_chain"]
