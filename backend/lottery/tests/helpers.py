from lottery.logic.models import LotteryState
from lottery.logic.roster import build_roster, range_names


def make_state(names: list[str] | None = None, **updates: object) -> LotteryState:
    """LotteryState with a freshly built roster (1..10 by default)."""
    roster = build_roster(names if names is not None else range_names(1, 10))
    return LotteryState(roster=roster).model_copy(update=updates)
