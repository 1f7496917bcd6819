from reward_ledger.workers.tasks.referral_codes import backfill_referral_codes

__all__ = ["backfill_referral_codes"]
