"""
Star rating derived from an actor's action count.

One star is awarded for every ten actions: posts for schools, receipts
for farmers.  ``ActorDirectory`` registers this function with
SQLite and applies it in the same ``UPDATE`` that changes the count.
"""

ACTIONS_PER_STAR = 10


def stars(count: int) -> int:
    """Return ``floor(count / 10)`` for a non-negative action count."""
    if count < 0:
        raise ValueError(f"action count must be non-negative, got {count}")
    return count // ACTIONS_PER_STAR
