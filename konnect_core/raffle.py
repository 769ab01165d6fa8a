"""Referral raffle: one ticket per referred user, per referrer."""
from __future__ import annotations

import logging
import random
import string
import time
from typing import Optional

from .errors import InvalidArgument, NotFound
from .store import ContestStore
from .types import RaffleEntry

logger = logging.getLogger(__name__)

REFERRAL_PREFIX = "LK"
TICKETS_PER_REFERRAL = 1

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_referral_id(now_ms: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    """Build ``LK-<base36 epoch ms>-<5 random base36 chars>``, upper-cased."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    rng = rng or random.SystemRandom()
    suffix = "".join(rng.choice(_BASE36) for _ in range(5))
    return f"{REFERRAL_PREFIX}-{_to_base36(now_ms)}-{suffix}".upper()


def referral_key(referrer_user_id: str, referred_user_id: str) -> str:
    return f"{referrer_user_id}:{referred_user_id}"


def record_referral(store: ContestStore, referral_id: str, referred_user_id: str) -> RaffleEntry:
    """Credit the owner of ``referral_id`` with a raffle ticket.

    Raises InvalidArgument for empty ids, NotFound for an unknown referral id
    and Conflict when this referred user was already counted.
    """
    if not isinstance(referral_id, str) or not referral_id.strip():
        raise InvalidArgument("Missing required field: referralId")
    if not isinstance(referred_user_id, str) or not referred_user_id.strip():
        raise InvalidArgument("Missing required field: userId")

    referrer = store.find_user_by_referral(referral_id)
    if referrer is None:
        raise NotFound("Invalid referral ID")

    entry = store.add_raffle_entry(
        RaffleEntry(
            id=referral_key(referrer.id, referred_user_id),
            referrer_user_id=referrer.id,
            referral_id=referral_id,
            referred_user_id=referred_user_id,
            tickets_earned=TICKETS_PER_REFERRAL,
        )
    )
    logger.info(
        f"Raffle entry created: referrer={referrer.id} referred={referred_user_id} "
        f"tickets={entry.tickets_earned}"
    )
    return entry


__all__ = ["generate_referral_id", "record_referral", "referral_key"]
