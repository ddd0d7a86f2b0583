"""Default values for a lottery session."""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BACKGROUND = (
    "https://images.unsplash.com/photo-1516450360452-9312f5e86fc7?q=80&w=2670&auto=format&fit=crop"
)
READY_LABEL = "Ready"


class LotterySettings(BaseModel):
    """
    Tunable defaults for the round controller.

    All fields have default values matching the event app's behaviour.
    """

    model_config = ConfigDict(frozen=True)

    # --- Roster ---
    default_roster_size: int = Field(default=100, ge=0)  # seeds "1".."N" when nothing is persisted

    # --- Rounds ---
    default_prize_name: str = "Grand Prize"
    default_draw_count: int = Field(default=1, ge=1)

    # --- Presentation ---
    rolling_interval_seconds: float = Field(default=0.04, gt=0)
    default_background: str = DEFAULT_BACKGROUND
