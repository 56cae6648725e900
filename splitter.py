# splitter.py
"""Even split of an expense into whole-cent shares.

All arithmetic happens on integer cents. Every participant gets the same base
share and the last participant in the given order absorbs the remainder, so
the shares always add back up to the total exactly.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Hashable, List, Sequence, Tuple

from errors import EmptyParticipantSet, InvalidAmount, ValidationError

CENT = Decimal("0.01")
# Largest amount a NUMERIC(12, 2) column holds: 9 999 999 999.99
MAX_CENTS = 999_999_999_999


def to_cents(amount) -> int:
    """Convert a positive monetary value to integer cents (half-up to the nearest cent)."""
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmount("Amount must be a number")
    try:
        # str() keeps floats like 0.1 from dragging in binary noise
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"Amount {amount!r} is not a number")
    if not value.is_finite():
        raise InvalidAmount("Amount must be a finite number")
    try:
        cents = int(value.quantize(CENT, rounding=ROUND_HALF_UP) * 100)
    except InvalidOperation:
        raise InvalidAmount(f"Amount {amount!r} is too large")
    if cents <= 0:
        raise InvalidAmount("Amount must be greater than zero")
    if cents > MAX_CENTS:
        raise InvalidAmount(f"Amount {amount!r} is too large")
    return cents


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def split(total_amount, participant_ids: Sequence[Hashable]) -> List[Tuple[Hashable, Decimal]]:
    """
    Split ``total_amount`` evenly across ``participant_ids``.

    Returns ``(participant_id, share)`` pairs in the given order. The last
    participant gets ``base + cents % n``; everyone else gets ``base``.
    """
    cents = to_cents(total_amount)
    participants = list(participant_ids)
    if not participants:
        raise EmptyParticipantSet("An expense needs at least one participant")
    if len(set(participants)) != len(participants):
        raise ValidationError("Participants must be distinct")

    count = len(participants)
    base_share = cents // count
    last_share = cents - base_share * (count - 1)

    shares = [(pid, from_cents(base_share)) for pid in participants[:-1]]
    shares.append((participants[-1], from_cents(last_share)))
    return shares
