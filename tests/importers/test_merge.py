import pytest
from sqlalchemy.exc import OperationalError

from db import EosTarget, Instrument, ShowMetadata
from db.store import PatchTransaction
from import_engine.errors import PersistenceError
from import_engine.merge import MergeEngine
from patch.records import PartialInstrument, SideEffects, TargetReference
from tests.factories import InstrumentFactory


def _rows(session):
    return [i.to_dict() for i in session.query(Instrument).order_by(Instrument.id)]


@pytest.fixture
def engine(store):
    return MergeEngine(store)


@pytest.fixture
def seeded(engine, session):
    InstrumentFactory(channel="1", part=1, color="R02", purpose="Wash")
    InstrumentFactory(channel="1", part=2, color="R02", purpose="Wash")
    InstrumentFactory(channel="2", part=1, address="1:10")
    return engine


def test_replace_discards_existing_rows(seeded, session_factory):
    s = session_factory()
    old_ids = {r["id"] for r in _rows(s)}
    s.close()

    result = seeded.apply([PartialInstrument(channel="9", part=1)], "replace")
    assert result.removed == 3
    assert result.inserted == 1

    s = session_factory()
    rows = _rows(s)
    s.close()
    assert [(r["channel"], r["part"]) for r in rows] == [("9", 1)]
    assert not old_ids & {r["id"] for r in rows}


def test_replace_resolves_defaults(engine, session):
    engine.apply([PartialInstrument(channel="007")], "replace")
    row = _rows(session)[0]
    assert row["channel"] == "7"
    assert row["part"] == 1
    assert row["dmx_footprint"] == 1
    assert row["color"] == ""


def test_merge_updates_fields_in_place(seeded, session_factory):
    result = seeded.apply([PartialInstrument(channel="1", part=2, color="L201")], "merge")
    assert (result.updated, result.inserted) == (1, 0)

    s = session_factory()
    rows = {(r["channel"], r["part"]): r for r in _rows(s)}
    s.close()
    assert rows[("1", 2)]["color"] == "L201"
    assert rows[("1", 2)]["purpose"] == "Wash"
    assert rows[("1", 1)]["color"] == "R02"


def test_merge_without_part_matches_first_row_on_channel(seeded, session_factory):
    seeded.apply([PartialInstrument(channel="1", gobo="Breakup")], "merge")
    s = session_factory()
    rows = {(r["channel"], r["part"]): r for r in _rows(s)}
    s.close()
    assert rows[("1", 1)]["gobo"] == "Breakup"
    assert rows[("1", 2)]["gobo"] == ""


def test_merge_inserts_unmatched(seeded, session_factory):
    result = seeded.apply([PartialInstrument(channel="1", part=3, color="G")], "merge")
    assert result.inserted == 1
    s = session_factory()
    assert len(_rows(s)) == 4
    s.close()


def test_merge_custom_fields_key_by_key(engine, session_factory):
    engine.apply([PartialInstrument(channel="1", part=1, custom_fields={"A": "1", "B": "2"})], "replace")
    engine.apply([PartialInstrument(channel="1", part=1, custom_fields={"B": "3"})], "merge")
    s = session_factory()
    assert _rows(s)[0]["custom_fields"] == {"A": "1", "B": "3"}
    s.close()


def test_merge_is_idempotent_for_keyed_batches(seeded, session_factory):
    batch = [
        PartialInstrument(channel="1", part=1, color="L201"),
        PartialInstrument(channel="5", part=1, address="2:1"),
        PartialInstrument(channel="5", part=2, address="2:2"),
    ]
    seeded.apply(batch, "merge")
    s = session_factory()
    first = _rows(s)
    s.close()

    seeded.apply(batch, "merge")
    s = session_factory()
    second = _rows(s)
    s.close()

    strip = lambda rows: [{k: v for k, v in r.items() if k != "id"} for r in rows]
    assert strip(first) == strip(second)


def test_targets_replaced_under_both_policies(engine, session_factory):
    effects = SideEffects(targets=[TargetReference("Group", "1", "A")], replaces_targets=True)
    engine.apply([], "replace", effects)
    effects = SideEffects(targets=[TargetReference("Preset", "2", "B")], replaces_targets=True)
    engine.apply([], "merge", effects)

    s = session_factory()
    targets = [(t.target_type, t.target_id) for t in s.query(EosTarget)]
    s.close()
    assert targets == [("Preset", "2")]


def test_merge_without_targets_keeps_existing_targets(engine, session_factory):
    engine.apply([], "replace", SideEffects(targets=[TargetReference("Group", "1")], replaces_targets=True))
    engine.apply([PartialInstrument(channel="1")], "merge", SideEffects(replaces_targets=True))
    s = session_factory()
    assert s.query(EosTarget).count() == 1
    s.close()


def test_replace_csv_import_clears_targets(engine, session_factory):
    engine.apply([], "replace", SideEffects(targets=[TargetReference("Group", "1")], replaces_targets=True))
    engine.apply([PartialInstrument(channel="1")], "replace", SideEffects(replaces_targets=True))
    s = session_factory()
    assert s.query(EosTarget).count() == 0
    s.close()


def test_custom_field_names_registered_in_order(engine, session_factory):
    engine.apply([], "merge", SideEffects(custom_field_names=["B", "A"]))
    engine.apply([], "merge", SideEffects(custom_field_names=["A", "C"]))
    s = session_factory()
    meta = s.query(ShowMetadata).one()
    assert meta.custom_field_definitions == ["B", "A", "C"]
    s.close()


def test_show_info_only_on_replace(engine, session_factory):
    engine.apply([], "replace", show_info={"name": "Hamlet", "venue": "Globe"})
    engine.apply([], "replace", show_info={"name": "", "designer": "Jo"})
    engine.apply([], "merge", show_info={"name": "Ignored"})
    s = session_factory()
    meta = s.query(ShowMetadata).one().to_dict()
    s.close()
    assert meta["name"] == "Hamlet"
    assert meta["venue"] == "Globe"
    assert meta["designer"] == "Jo"


def test_failed_batch_leaves_nothing_behind(seeded, session_factory, monkeypatch):
    real_insert = PatchTransaction.insert
    calls = {"n": 0}

    def flaky_insert(self, values, custom_fields=None):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT", {}, Exception("disk full"))
        return real_insert(self, values, custom_fields)

    monkeypatch.setattr(PatchTransaction, "insert", flaky_insert)

    batch = [
        PartialInstrument(channel="1", part=1, color="CHANGED"),
        PartialInstrument(channel="30", part=1),
        PartialInstrument(channel="31", part=1),
    ]
    effects = SideEffects(custom_field_names=["Orphan"])
    with pytest.raises(PersistenceError):
        seeded.apply(batch, "replace", effects)

    s = session_factory()
    rows = _rows(s)
    meta = s.query(ShowMetadata).one()
    s.close()
    # previous patch untouched, registration survived
    assert len(rows) == 3
    assert rows[0]["color"] == "R02"
    assert meta.custom_field_definitions == ["Orphan"]


def test_unknown_policy_rejected(engine):
    with pytest.raises(ValueError):
        engine.apply([], "append")
