import pytest

from fleetmaint.app_factory import create_app


@pytest.fixture
def client():
    app = create_app({"TESTING": True})
    return app.test_client()


@pytest.fixture
def seeded(db, parts, service_note):
    db.commit()
    return {"note_id": service_note.id, "parts": {sku: p.id for sku, p in parts.items()}}


def put_cart(client, note_id, items, operator="mechanic-1"):
    return client.put(f"/service-notes/{note_id}/parts", json={"parts": items},
                      headers={"X-Operator-Id": operator})


def test_reconcile_and_list(client, seeded):
    note_id, ids = seeded["note_id"], seeded["parts"]
    items = [
        {"part_id": ids["BRK-001"], "sku": "BRK-001", "quantity_to_use": 2, "unit_cost": 45.9},
        {"part_id": ids["SPK-100"], "sku": "SPK-100", "quantity_to_use": 4, "unit_cost": "12.00"},
    ]

    resp = put_cart(client, note_id, items)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["data"]["changed"] is True
    assert body["data"]["summary"]["to_insert"] == 2
    assert body["warnings"] == []

    listed = client.get(f"/service-notes/{note_id}/parts").get_json()["data"]
    assert sorted(p["sku"] for p in listed) == ["BRK-001", "SPK-100"]
    brake = next(p for p in listed if p["sku"] == "BRK-001")
    assert brake["total_cost"] == pytest.approx(91.8)


def test_repeat_reconcile_reports_no_change(client, seeded):
    note_id, ids = seeded["note_id"], seeded["parts"]
    items = [{"part_id": ids["OIL-010"], "quantity_to_use": 1, "unit_cost": 18.5}]

    put_cart(client, note_id, items)
    body = put_cart(client, note_id, items).get_json()

    assert body["data"]["changed"] is False
    assert len(body["data"]["rows"]) == 1


def test_invalid_items_come_back_as_warnings(client, seeded):
    note_id, ids = seeded["note_id"], seeded["parts"]
    items = [
        {"part_id": ids["OIL-010"], "quantity_to_use": 1, "unit_cost": 18.5},
        {"sku": "NO-ID", "quantity_to_use": 3, "unit_cost": 1},
        {"part_id": ids["BRK-001"], "sku": "BRK-001", "quantity_to_use": 0, "unit_cost": 45.9},
    ]

    body = put_cart(client, note_id, items).get_json()

    assert body["ok"] is True
    assert len(body["data"]["skipped"]) == 2
    assert len(body["warnings"]) == 2
    assert "BRK-001" in body["warnings"][1]


def test_list_body_is_accepted(client, seeded):
    note_id, ids = seeded["note_id"], seeded["parts"]
    resp = client.put(f"/service-notes/{note_id}/parts",
                      json=[{"part_id": ids["OIL-010"], "quantity_to_use": 1, "unit_cost": 18.5}])
    assert resp.status_code == 200


def test_bad_payloads(client, seeded):
    note_id = seeded["note_id"]

    assert client.put(f"/service-notes/{note_id}/parts", json={"foo": 1}).status_code == 400

    resp = put_cart(client, note_id, [{"part_id": "x", "quantity_to_use": 1, "unit_cost": "cheap"}])
    assert resp.status_code == 400
    assert resp.get_json()["error_type"] == "SCHEMA_ERROR"


def test_unknown_service_note(client, seeded):
    resp = client.get("/service-notes/does-not-exist/parts")
    assert resp.status_code == 404
    assert resp.get_json()["error_type"] == "INPUT_ERROR"

    resp = put_cart(client, "does-not-exist", [])
    assert resp.status_code == 404


def test_remove_part(client, seeded):
    note_id, ids = seeded["note_id"], seeded["parts"]
    put_cart(client, note_id, [{"part_id": ids["OIL-010"], "quantity_to_use": 1, "unit_cost": 18.5}])
    row_id = client.get(f"/service-notes/{note_id}/parts").get_json()["data"][0]["id"]

    resp = client.delete(f"/service-notes/{note_id}/parts/{row_id}")
    assert resp.status_code == 200
    assert client.get(f"/service-notes/{note_id}/parts").get_json()["data"] == []

    assert client.delete(f"/service-notes/{note_id}/parts/{row_id}").status_code == 404


def test_export_excel(client, seeded):
    note_id, ids = seeded["note_id"], seeded["parts"]
    put_cart(client, note_id, [{"part_id": ids["OIL-010"], "quantity_to_use": 2, "unit_cost": 18.5}])

    resp = client.get(f"/service-notes/{note_id}/parts/export")

    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert resp.data[:2] == b"PK"


def test_negative_cost_is_stable_across_repeated_puts(client, seeded):
    note_id, ids = seeded["note_id"], seeded["parts"]
    items = [{"part_id": ids["SPK-100"], "quantity_to_use": 3, "unit_cost": -2}]

    first = put_cart(client, note_id, items).get_json()
    second = put_cart(client, note_id, items).get_json()

    assert first["data"]["changed"] is True
    assert first["data"]["rows"][0]["unit_cost_at_time"] == pytest.approx(0.01)
    assert second["data"]["changed"] is False
    assert second["data"]["summary"]["to_update"] == 0


@pytest.mark.parametrize("bad_quantity", ["", "abc", 2.5])
def test_unparsable_quantity_skips_only_that_item(client, seeded, bad_quantity):
    note_id, ids = seeded["note_id"], seeded["parts"]
    items = [
        {"part_id": ids["OIL-010"], "sku": "OIL-010", "quantity_to_use": 1, "unit_cost": 1},
        {"part_id": ids["BRK-001"], "sku": "BRK-001", "quantity_to_use": bad_quantity, "unit_cost": 1},
    ]

    resp = put_cart(client, note_id, items)

    assert resp.status_code == 200
    body = resp.get_json()
    assert [p["sku"] for p in body["data"]["inserted"]] == ["OIL-010"]
    assert len(body["warnings"]) == 1
    assert "BRK-001" in body["warnings"][0]
