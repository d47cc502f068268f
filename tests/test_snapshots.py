from datetime import date, timedelta
from pathlib import Path

import pytest

from stockestimate.infra.repositories import StockRepo
from stockestimate.usecases.chemicals import ChemicalNotFoundError, create_chemical, update_chemical
from stockestimate.usecases.snapshots import (
    InvalidSnapshotDateError,
    SnapshotNotFoundError,
    add_snapshot,
    delete_snapshot,
    get_snapshot,
    list_snapshot_dates,
    project_snapshot,
    remove_snapshot_chemical,
    replace_snapshot_chemical,
    run_snapshot_view,
    save_snapshot,
    update_snapshot,
    validate_snapshot_date,
)


@pytest.fixture
def db(tmp_path: Path) -> str:
    return str(tmp_path / "snap_test.sqlite")


@pytest.mark.parametrize("bad", ["2025-3-1", "01/03/2025", "", None, "2025-03-01T00:00", "2025-02-30", "2025-13-01"])
def test_invalid_dates_are_rejected(bad):
    with pytest.raises(InvalidSnapshotDateError):
        validate_snapshot_date(bad)


def test_add_snapshot_keeps_last_ninety():
    snaps = []
    start = date(2025, 1, 1)
    for n in range(95):
        snaps = add_snapshot(snaps, {"date": (start + timedelta(days=n)).isoformat()})
    assert len(snaps) == 90
    assert snaps[0]["date"] == (start + timedelta(days=5)).isoformat()
    assert snaps[-1]["date"] == (start + timedelta(days=94)).isoformat()


def test_add_snapshot_replaces_same_date():
    snaps = add_snapshot([{"date": "2025-01-01", "v": 1}, {"date": "2025-01-02"}], {"date": "2025-01-01", "v": 2})
    assert [s["date"] for s in snaps] == ["2025-01-02", "2025-01-01"]
    assert snaps[-1]["v"] == 2


def test_save_snapshot_is_a_deep_copy(db):
    chem = create_chemical("Soda", factory_stock=30, use_per_day=10, db_path=db)
    assert save_snapshot("2025-03-01", db_path=db) == "2025-03-01"

    update_chemical(chem.id, {"factory_stock": 999}, db_path=db)
    snap = get_snapshot("2025-03-01", db)
    assert snap["chemicals"][0]["factoryStock"] == 30
    assert snap["config"]["shifts"] == {"EVA": 2, "EVR": 2}


def test_save_snapshot_defaults_to_today(db):
    assert save_snapshot(db_path=db) == date.today().isoformat()


def test_save_invalid_date_writes_nothing(db):
    with pytest.raises(InvalidSnapshotDateError):
        save_snapshot("yesterday", db_path=db)
    with pytest.raises(InvalidSnapshotDateError):
        save_snapshot("2025-02-30", db_path=db)
    assert StockRepo(db).snapshots() == []


def test_list_dates_descending(db):
    for d in ("2025-03-02", "2025-03-10", "2025-03-01"):
        save_snapshot(d, db_path=db)
    assert list_snapshot_dates(db) == ["2025-03-10", "2025-03-02", "2025-03-01"]


def test_snapshot_replays_with_its_own_date(db):
    create_chemical(
        "Soda", factory_stock=30, use_per_day=10,
        imports=[{"qty": 100, "eta": "2025-03-06"}], db_path=db,
    )
    save_snapshot("2025-03-01", db_path=db)
    view = project_snapshot(get_snapshot("2025-03-01", db))
    chem = view.chemicals[0]
    assert chem.gap_days == 2.0
    assert [(s.start_day, s.end_day) for s in chem.timeline] == [(0.0, 3.0), (3.0, 5.0), (5.0, 15.0)]
    assert run_snapshot_view("2025-03-01", db).summary.critical == 1


def test_update_snapshot_fields_and_date(db):
    save_snapshot("2025-03-01", db_path=db)
    save_snapshot("2025-03-02", db_path=db)
    snap = update_snapshot(
        "2025-03-01",
        chemicals=[{"id": "x", "name": "X", "import": 10}],
        config={"shifts": {"EVA": 1}},
        new_date="2025-03-05",
        db_path=db,
    )
    assert snap["date"] == "2025-03-05"
    assert snap["chemicals"][0]["imports"][0]["qty"] == 10
    assert list_snapshot_dates(db) == ["2025-03-05", "2025-03-02"]
    assert get_snapshot("2025-03-05", db)["config"] == {"shifts": {"EVA": 1}}

    with pytest.raises(InvalidSnapshotDateError):
        update_snapshot("2025-03-05", new_date="bad", db_path=db)


def test_update_to_existing_date_replaces_it(db):
    save_snapshot("2025-03-01", db_path=db)
    save_snapshot("2025-03-02", db_path=db)
    update_snapshot("2025-03-01", new_date="2025-03-02", db_path=db)
    assert list_snapshot_dates(db) == ["2025-03-02"]


def test_delete_and_missing_snapshot(db):
    save_snapshot("2025-03-01", db_path=db)
    delete_snapshot("2025-03-01", db_path=db)
    assert list_snapshot_dates(db) == []
    with pytest.raises(SnapshotNotFoundError):
        delete_snapshot("2025-03-01", db_path=db)
    with pytest.raises(SnapshotNotFoundError):
        get_snapshot("2025-03-01", db)


def test_snapshot_chemical_edits(db):
    a = create_chemical("A", factory_stock=1, db_path=db)
    b = create_chemical("B", db_path=db)
    save_snapshot("2025-03-01", db_path=db)

    replace_snapshot_chemical("2025-03-01", {**a.to_dict(), "factoryStock": 77}, db_path=db)
    snap = get_snapshot("2025-03-01", db)
    assert snap["chemicals"][0]["factoryStock"] == 77

    remove_snapshot_chemical("2025-03-01", b.id, db_path=db)
    assert [c["id"] for c in get_snapshot("2025-03-01", db)["chemicals"]] == [a.id]

    with pytest.raises(ChemicalNotFoundError):
        remove_snapshot_chemical("2025-03-01", b.id, db_path=db)
    assert [c["id"] for c in StockRepo(db).chemicals()] == [a.id, b.id]


def test_replay_of_stored_impossible_date_is_refused():
    snap = {"date": "2025-02-30", "chemicals": [{"id": "x", "name": "X", "factoryStock": 10, "usePerDay": 1}]}
    with pytest.raises(InvalidSnapshotDateError):
        project_snapshot(snap)
    with pytest.raises(InvalidSnapshotDateError):
        project_snapshot({"chemicals": []})
