import json

from lottery.logic.ledger import attach_comment, record_round
from lottery.logic.models import DisplaySettings
from lottery.persistence.gateway import STORAGE_KEY, LotterySnapshot, PersistenceGateway
from lottery.tests.helpers import make_state
from lottery.tests.mocks import FailingSnapshotStorage, MemorySnapshotStorage


def _played_state():
    state = make_state()
    state, first = record_round(state, "Second Prize", state.roster[:3], timestamp=1000)
    state, _ = record_round(state, "First Prize", state.roster[3:4], timestamp=2000)
    state = attach_comment(state, first.id, "Lucky day")
    return state.model_copy(update={"display": DisplaySettings(background="data:image/png;base64,AAA", is_muted=True)})


class TestPersistenceRoundTrip:
    def test_save_then_load_reproduces_state(self):
        storage = MemorySnapshotStorage()
        gateway = PersistenceGateway(storage)
        state = _played_state()

        assert gateway.save(state) is True
        loaded = gateway.load()

        assert loaded == state

    def test_roster_and_ledger_order_preserved(self):
        gateway = PersistenceGateway(MemorySnapshotStorage())
        state = _played_state()
        gateway.save(state)

        loaded = gateway.load()

        assert loaded is not None
        assert [p.id for p in loaded.roster] == [p.id for p in state.roster]
        assert [r.round_id for r in loaded.ledger] == [2, 1]
        assert loaded.round_counter == 3

    def test_snapshot_uses_wire_field_names(self):
        storage = MemorySnapshotStorage()
        PersistenceGateway(storage).save(_played_state())

        data = json.loads(storage.data[STORAGE_KEY])

        assert set(data) == {"allParticipants", "history", "bgImage", "isMuted", "roundNumber"}
        assert data["roundNumber"] == 3
        assert data["isMuted"] is True
        newest, oldest = data["history"]
        assert "aiComment" not in newest
        assert oldest["aiComment"] == "Lucky day"
        assert set(oldest["winners"][0]) == {"id", "name"}

    def test_non_ascii_names_survive(self):
        gateway = PersistenceGateway(MemorySnapshotStorage())
        state = make_state(["张三", "李四"])
        gateway.save(state)

        loaded = gateway.load()

        assert loaded is not None
        assert [p.name for p in loaded.roster] == ["张三", "李四"]


class TestPersistenceLoadFallbacks:
    def test_missing_snapshot_returns_none(self):
        assert PersistenceGateway(MemorySnapshotStorage()).load() is None

    def test_invalid_json_returns_none(self, caplog):
        storage = MemorySnapshotStorage({STORAGE_KEY: "{not json"})

        assert PersistenceGateway(storage).load() is None
        assert "unreadable snapshot" in caplog.text

    def test_non_object_root_returns_none(self):
        storage = MemorySnapshotStorage({STORAGE_KEY: "[1, 2, 3]"})
        assert PersistenceGateway(storage).load() is None

    def test_schema_violation_returns_none(self):
        storage = MemorySnapshotStorage({STORAGE_KEY: json.dumps({"allParticipants": [{"name": "no id"}]})})
        assert PersistenceGateway(storage).load() is None

    def test_duplicate_roster_ids_return_none(self):
        payload = {"allParticipants": [{"id": "a", "name": "A"}, {"id": "a", "name": "B"}]}
        storage = MemorySnapshotStorage({STORAGE_KEY: json.dumps(payload)})
        assert PersistenceGateway(storage).load() is None

    def test_read_error_returns_none(self):
        storage = FailingSnapshotStorage({STORAGE_KEY: "{}"}, fail_reads=True)
        assert PersistenceGateway(storage).load() is None

    def test_partial_snapshot_fills_defaults(self):
        storage = MemorySnapshotStorage({STORAGE_KEY: json.dumps({"allParticipants": [{"id": "a", "name": "A"}]})})

        loaded = PersistenceGateway(storage).load()

        assert loaded is not None
        assert [p.name for p in loaded.roster] == ["A"]
        assert loaded.ledger == ()
        assert loaded.round_counter == 1
        assert loaded.display == DisplaySettings()

    def test_null_lists_and_zero_round_number_load_as_defaults(self):
        payload = {"allParticipants": None, "history": None, "roundNumber": 0}
        storage = MemorySnapshotStorage({STORAGE_KEY: json.dumps(payload)})

        loaded = PersistenceGateway(storage).load()

        assert loaded is not None
        assert loaded.roster == ()
        assert loaded.round_counter == 1

    def test_unknown_fields_are_ignored(self):
        payload = {"allParticipants": [], "history": [], "roundNumber": 4, "legacyTheme": "dark"}
        storage = MemorySnapshotStorage({STORAGE_KEY: json.dumps(payload)})

        loaded = PersistenceGateway(storage).load()

        assert loaded is not None
        assert loaded.round_counter == 4


class TestPersistenceSaveFailures:
    def test_write_failure_returns_false_and_logs(self, caplog):
        gateway = PersistenceGateway(FailingSnapshotStorage())

        assert gateway.save(make_state()) is False
        assert "snapshot not saved" in caplog.text

    def test_write_failure_leaves_previous_snapshot(self):
        previous = json.dumps({"allParticipants": [{"id": "a", "name": "A"}], "roundNumber": 7})
        storage = FailingSnapshotStorage({STORAGE_KEY: previous})

        PersistenceGateway(storage).save(make_state())

        assert storage.data[STORAGE_KEY] == previous

    def test_custom_key(self):
        storage = MemorySnapshotStorage()
        gateway = PersistenceGateway(storage, key="event_2026")

        gateway.save(make_state())

        assert gateway.key == "event_2026"
        assert set(storage.data) == {"event_2026"}


class TestLotterySnapshot:
    def test_from_state_to_state(self):
        state = _played_state()
        assert LotterySnapshot.from_state(state).to_state() == state
