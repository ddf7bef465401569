import random
import string
from typing import NamedTuple, Optional

SHARE = 'share'
STEAL = 'steal'
DECISIONS = (SHARE, STEAL)

MUTUAL_SHARE = 'mutual-share'
EXPLOITED = 'exploited'
EXPLOITED_MIRRORED = 'exploited-mirrored'
MUTUAL_STEAL = 'mutual-steal'


class Outcome(NamedTuple):
    category: str
    token_a: Optional[str]
    token_b: Optional[str]


def is_decision(value) -> bool:
    return isinstance(value, str) and value in DECISIONS


def generate_prize_code(length=6, double=False):
    """Generate a short display code. Not unique and not a credential."""
    code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
    return f"P-{code}-BOTH" if double else f"P-{code}"


def resolve(decision_a: str, decision_b: str, code_length: int = 6) -> Outcome:
    """Map a pair of decisions to a result category and per-side prize codes.

    Both share: both get a code. One steals from a sharer: only the stealer
    gets a code, marked as a double prize. Both steal: nobody gets one.
    """
    if not (is_decision(decision_a) and is_decision(decision_b)):
        raise ValueError(f"illegal decisions: {decision_a!r}, {decision_b!r}")
    if decision_a == SHARE and decision_b == SHARE:
        return Outcome(MUTUAL_SHARE, generate_prize_code(code_length), generate_prize_code(code_length))
    if decision_a == SHARE and decision_b == STEAL:
        return Outcome(EXPLOITED, None, generate_prize_code(code_length, double=True))
    if decision_a == STEAL and decision_b == SHARE:
        return Outcome(EXPLOITED_MIRRORED, generate_prize_code(code_length, double=True), None)
    return Outcome(MUTUAL_STEAL, None, None)
