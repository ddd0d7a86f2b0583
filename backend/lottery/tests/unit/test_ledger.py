import pytest
from pydantic import ValidationError

from lottery.logic.ledger import attach_comment, clear_ledger, record_round, replace_roster
from lottery.logic.models import LotteryState, Participant
from lottery.logic.roster import build_roster
from lottery.tests.helpers import make_state


class TestRecordRound:
    def test_record_carries_current_round_number_and_counter_advances(self):
        state = make_state()
        new_state, record = record_round(state, "Grand Prize", state.roster[:2], timestamp=1_700_000_000_000)

        assert record.round_id == 1
        assert record.prize_name == "Grand Prize"
        assert record.winners == state.roster[:2]
        assert record.timestamp == 1_700_000_000_000
        assert record.ai_comment is None
        assert new_state.round_counter == 2

    def test_newest_record_first(self):
        state = make_state()
        state, first = record_round(state, "A", state.roster[:1])
        state, second = record_round(state, "B", state.roster[1:2])

        assert [r.id for r in state.ledger] == [second.id, first.id]
        assert [r.round_id for r in state.ledger] == [2, 1]

    def test_input_state_is_not_mutated(self):
        state = make_state()
        record_round(state, "A", state.roster[:1])

        assert state.ledger == ()
        assert state.round_counter == 1

    def test_default_timestamp_is_epoch_millis(self):
        state = make_state()
        _, record = record_round(state, "A", state.roster[:1])
        assert record.timestamp > 1_600_000_000_000

    def test_record_ids_are_unique(self):
        state = make_state()
        ids = set()
        for participant in state.roster:
            state, record = record_round(state, "A", [participant])
            ids.add(record.id)
        assert len(ids) == len(state.roster)


class TestAttachComment:
    def test_sets_comment_on_matching_record_only(self):
        state = make_state()
        state, first = record_round(state, "A", state.roster[:1])
        state, second = record_round(state, "B", state.roster[1:2])

        updated = attach_comment(state, first.id, "Lucky!")

        assert updated is not None
        by_id = {r.id: r for r in updated.ledger}
        assert by_id[first.id].ai_comment == "Lucky!"
        assert by_id[second.id].ai_comment is None

    def test_missing_record_returns_none(self):
        state = make_state()
        state, record = record_round(state, "A", state.roster[:1])
        cleared = clear_ledger(state)

        assert attach_comment(cleared, record.id, "Too late") is None


class TestClearLedger:
    def test_resets_ledger_and_counter_keeps_roster(self):
        state = make_state()
        state, _ = record_round(state, "A", state.roster[:3])
        state, _ = record_round(state, "B", state.roster[3:6])

        cleared = clear_ledger(state)

        assert cleared.ledger == ()
        assert cleared.round_counter == 1
        assert cleared.roster == state.roster


class TestReplaceRoster:
    def test_ledger_survives_roster_replacement(self):
        state = make_state()
        state, record = record_round(state, "A", state.roster[:2])

        replaced = replace_roster(state, build_roster(["X", "Y"]))

        assert [p.name for p in replaced.roster] == ["X", "Y"]
        assert replaced.ledger == (record,)
        assert replaced.round_counter == 2

    def test_duplicate_ids_rejected(self):
        state = make_state()
        dup = (Participant(id="same", name="A"), Participant(id="same", name="B"))

        with pytest.raises(ValidationError, match="unique"):
            replace_roster(state, dup)


class TestLotteryStateModel:
    def test_defaults(self):
        state = LotteryState()
        assert state.roster == ()
        assert state.ledger == ()
        assert state.round_counter == 1
        assert state.display.is_muted is False

    def test_round_counter_must_be_positive(self):
        with pytest.raises(ValidationError):
            LotteryState(round_counter=0)

    def test_models_are_frozen(self):
        state = make_state()
        with pytest.raises(ValidationError):
            state.round_counter = 5

    def test_camel_case_aliases(self):
        state = make_state()
        _, record = record_round(state, "A", state.roster[:1], timestamp=5)

        dumped = record.model_dump(by_alias=True, exclude_none=True)

        assert set(dumped) == {"id", "roundId", "prizeName", "winners", "timestamp"}
