"""Turn-capped scoring for e2e tasks.

Later turns earn less: an agent that needs feedback to get the browser tests
green scores below one that got there first time.
"""

from __future__ import annotations

import math

MAX_SCORE_BY_TURN = {1: 5, 2: 3, 3: 1}
LATE_TURN_CAP = 1


def score_for_turn(turn: int, total_tests: int, passed_tests: int) -> int:
    """Score a browser-test outcome on turn ``turn`` (1-based).

    All tests passing earns the turn cap; otherwise partial credit
    ``round(passed / total * 5)`` limited by the same cap.
    """
    cap = MAX_SCORE_BY_TURN.get(turn, LATE_TURN_CAP)
    if total_tests > 0 and passed_tests == total_tests:
        return cap
    partial = math.floor(passed_tests / max(total_tests, 1) * 5 + 0.5)
    return min(partial, cap)
