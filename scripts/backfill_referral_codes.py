from __future__ import annotations

import argparse
import asyncio

from reward_ledger.core.config import get_settings
from reward_ledger.core.logging import configure_logging
from reward_ledger.db.session import dispose_engine
from reward_ledger.economy.referrals.codes import backfill_missing_referral_codes
from reward_ledger.economy.referrals.constants import BACKFILL_DEFAULT_BATCH_SIZE


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Assign referral codes to users that have none")
    parser.add_argument("--batch-size", type=int, default=BACKFILL_DEFAULT_BATCH_SIZE)
    return parser.parse_args()


async def _run(batch_size: int) -> int:
    try:
        result = await backfill_missing_referral_codes(batch_size=batch_size)
    finally:
        await dispose_engine()

    print(  # noqa: T201
        f"examined={result.examined} assigned={result.assigned} failed={result.failed}"
    )
    return 1 if result.failed else 0


def main() -> int:
    args = _parse_args()
    if args.batch_size <= 0:
        raise SystemExit("--batch-size must be positive")
    configure_logging(get_settings().log_level)
    return asyncio.run(_run(args.batch_size))


if __name__ == "__main__":
    raise SystemExit(main())
