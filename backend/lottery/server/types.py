from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt
from pydantic.alias_generators import to_camel

_REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RosterTextRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    text: str


class RosterRangeRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    # Strict so JSON booleans are refused; ordering is checked by the roster module.
    start: StrictInt | StrictFloat
    end: StrictInt | StrictFloat


class StartRoundRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    prize_name: str | None = Field(default=None, max_length=200)
    draw_count: StrictInt | None = None


class RoundNumberRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    round_number: StrictInt


class DisplayRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    background: str | None = Field(default=None, min_length=1)
    is_muted: StrictBool | None = None
