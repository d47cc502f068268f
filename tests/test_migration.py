from datetime import date

from stockestimate.domain.migration import (
    decode_chemical, migrate, migrate_chemicals, migrate_document, normalize_unit,
)
from stockestimate.domain.models import ChemicalRecord, ImportShipment, LegacyChemicalRecord


LEGACY = {
    "id": "chem_1",
    "name": "Caustic Soda",
    "category": "Chemical",
    "unit": "kg",
    "factoryStock": 120,
    "localPurchase": 0,
    "usePerDay": 8,
    "import": 200,
    "importEta": "2025-04-10",
    "notes": "",
    "lastUpdated": "2025-03-01",
}


def test_legacy_record_becomes_single_shipment():
    chem = migrate(LEGACY)
    assert isinstance(chem, ChemicalRecord)
    assert chem.unit == "bags"
    assert chem.imports == [ImportShipment(200.0, date(2025, 4, 10), "")]
    data = chem.to_dict()
    assert "import" not in data and "importEta" not in data
    assert data["imports"] == [{"qty": 200, "eta": "2025-04-10", "label": ""}]


def test_legacy_without_quantity_has_no_shipments():
    chem = migrate({**LEGACY, "import": 0})
    assert chem.imports == []


def test_migration_is_idempotent():
    once = migrate(LEGACY)
    twice = migrate(once)
    assert once == twice
    assert migrate(once.to_dict()) == once


def test_current_record_with_empty_imports_stays_current():
    raw = {"id": "x", "name": "X", "unit": "kg", "imports": [], "import": 50}
    variant = decode_chemical(raw)
    assert isinstance(variant, ChemicalRecord)
    chem = migrate(raw)
    assert chem.imports == []
    assert chem.unit == "bags"


def test_decode_chemical_picks_legacy_variant():
    assert isinstance(decode_chemical(LEGACY), LegacyChemicalRecord)


def test_shipment_aliases_are_accepted():
    raw = {"id": "x", "name": "X", "imports": [{"quantity": "12,5", "estimatedArrival": "2025-05-01T08:00:00"}]}
    chem = migrate(raw)
    assert chem.imports[0].quantity == 12.5
    assert chem.imports[0].estimated_arrival == date(2025, 5, 1)


def test_malformed_numbers_become_zero():
    chem = migrate({"id": "x", "name": "X", "factoryStock": "abc", "usePerDay": None, "imports": []})
    assert chem.factory_stock == 0.0
    assert chem.use_per_day == 0.0


def test_unknown_keys_are_preserved():
    chem = migrate({**LEGACY, "supplier": "ACME"})
    assert chem.to_dict()["supplier"] == "ACME"


def test_input_is_not_mutated():
    raw = dict(LEGACY)
    migrate(raw)
    assert raw == LEGACY


def test_normalize_unit():
    assert normalize_unit("kg") == "bags"
    assert normalize_unit("") == "bags"
    assert normalize_unit(None) == "bags"
    assert normalize_unit("drums") == "drums"


def test_migrate_chemicals_drops_non_objects():
    out = migrate_chemicals([LEGACY, "garbage", None])
    assert len(out) == 1


def test_migrate_document_covers_snapshots():
    doc = {
        "config": {"shifts": {"EVA": 2}},
        "chemicals": [LEGACY],
        "snapshots": [{"date": "2025-03-01", "chemicals": [LEGACY], "config": {}}],
    }
    out, changed = migrate_document(doc)
    assert changed
    assert "imports" in out["chemicals"][0]
    assert "imports" in out["snapshots"][0]["chemicals"][0]

    again, changed_again = migrate_document(out)
    assert not changed_again
    assert again == out
