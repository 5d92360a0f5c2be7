# backend/tests/test_inventory.py
from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta

from main import app
from schemas.inventory import ExtractedItem
from utils.gemini import get_extractor


def test_requires_authentication(client):
    resp = client.get("/inventory")
    assert resp.status_code in (401, 403)


def test_create_item_derives_status(client, admin_headers, make_item):
    item = make_item(quantity=2, minStock=2)
    assert item["status"] == "low-stock"
    assert item["createdById"] is not None

    fetched = client.get(f"/inventory/{item['id']}", headers=admin_headers).json()
    assert fetched["name"] == "Laptop"
    assert fetched["minStock"] == 2


def test_create_item_zero_quantity_is_out_of_stock(make_item):
    assert make_item(quantity=0)["status"] == "out-of-stock"


def test_create_item_sets_warranty_expiry(make_item):
    item = make_item(warranty="3 Years")
    expected = datetime.now(timezone.utc).date() + relativedelta(years=3)
    assert date.fromisoformat(item["warrantyExpiryDate"]) == expected


def test_create_item_without_warranty_has_no_expiry(make_item):
    assert make_item(warranty="")["warrantyExpiryDate"] is None


def test_multiple_serials_fan_out(make_item):
    items = make_item(quantity=3, serialNumber="SN1, SN2, SN3")
    assert [i["serialNumber"] for i in items] == ["SN1", "SN2", "SN3"]
    assert all(i["quantity"] == 1 for i in items)
    assert len({i["id"] for i in items}) == 3


def test_serials_not_matching_quantity_stay_on_one_item(make_item):
    item = make_item(quantity=5, serialNumber="SN1,SN2")
    assert item["quantity"] == 5
    assert item["serialNumber"] == "SN1, SN2"


def test_duplicate_serial_rejected_on_create(client, admin_headers, make_item):
    make_item(name="Laptop", serialNumber="SN100", quantity=1)

    resp = client.post(
        "/inventory",
        json={"name": "Monitor", "category": "Electronics", "quantity": 1, "serialNumber": "SN100"},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert "SN100" in resp.json()["message"]
    assert "Laptop" in resp.json()["message"]

    names = [i["name"] for i in client.get("/inventory", headers=admin_headers).json()]
    assert names == ["Laptop"]


def test_update_may_keep_own_serial_but_not_take_another(client, admin_headers, make_item):
    first = make_item(name="Laptop", serialNumber="SN1", quantity=1)
    second = make_item(name="Tablet", serialNumber="SN2", quantity=1)

    ok = client.put(f"/inventory/{first['id']}", json={"serialNumber": "SN1, SN9"}, headers=admin_headers)
    assert ok.status_code == 200, ok.text
    assert ok.json()["serialNumber"] == "SN1, SN9"

    clash = client.put(f"/inventory/{second['id']}", json={"serialNumber": "SN9"}, headers=admin_headers)
    assert clash.status_code == 400
    assert "SN9" in clash.json()["message"]

    # Freed serials can be reused
    client.put(f"/inventory/{first['id']}", json={"serialNumber": "SN1"}, headers=admin_headers)
    reuse = client.put(f"/inventory/{second['id']}", json={"serialNumber": "SN9"}, headers=admin_headers)
    assert reuse.status_code == 200


def test_update_recomputes_status(client, admin_headers, make_item):
    item = make_item(quantity=10, minStock=2)
    resp = client.put(f"/inventory/{item['id']}", json={"minStock": 10}, headers=admin_headers)
    assert resp.json()["status"] == "low-stock"
    resp = client.put(f"/inventory/{item['id']}", json={"quantity": 0}, headers=admin_headers)
    assert resp.json()["status"] == "out-of-stock"


def test_update_warranty_recomputes_expiry(client, admin_headers, make_item):
    item = make_item(warranty="1 Year")
    resp = client.put(f"/inventory/{item['id']}", json={"warranty": "2 Years"}, headers=admin_headers)
    expiry = date.fromisoformat(resp.json()["warrantyExpiryDate"])
    assert expiry == date.fromisoformat(item["warrantyExpiryDate"]) + relativedelta(years=1)


def test_update_and_delete_missing_item(client, admin_headers):
    assert client.put("/inventory/999", json={"name": "x"}, headers=admin_headers).status_code == 404
    resp = client.delete("/inventory/999", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Inventory item not found"


def test_delete_item_frees_serials(client, admin_headers, make_item):
    item = make_item(serialNumber="SN5", quantity=1)
    assert client.delete(f"/inventory/{item['id']}", headers=admin_headers).json() == {"message": "Item removed"}
    assert client.get(f"/inventory/{item['id']}", headers=admin_headers).status_code == 404
    make_item(name="Replacement", serialNumber="SN5", quantity=1)


def test_list_filters(client, admin_headers, make_item):
    make_item(name="Laptop", category="Electronics", quantity=10)
    make_item(name="Desk", category="Furniture", quantity=0)

    by_cat = client.get("/inventory", params={"category": "Furniture"}, headers=admin_headers).json()
    assert [i["name"] for i in by_cat] == ["Desk"]
    by_status = client.get("/inventory", params={"status": "out-of-stock"}, headers=admin_headers).json()
    assert [i["name"] for i in by_status] == ["Desk"]
    by_q = client.get("/inventory", params={"q": "lap"}, headers=admin_headers).json()
    assert [i["name"] for i in by_q] == ["Laptop"]


def test_bulk_create_is_all_or_nothing(client, admin_headers):
    body = {"items": [
        {"name": "Mouse", "quantity": 1, "serialNumber": "M1"},
        {"name": "Mouse 2", "quantity": 1, "serialNumber": "M1"},
    ]}
    resp = client.post("/inventory/bulk", json=body, headers=admin_headers)
    assert resp.status_code == 400
    assert "M1" in resp.json()["message"]
    assert client.get("/inventory", headers=admin_headers).json() == []

    body["items"][1]["serialNumber"] = "M2"
    resp = client.post("/inventory/bulk", json=body, headers=admin_headers)
    assert resp.status_code == 201
    assert [i["name"] for i in resp.json()] == ["Mouse", "Mouse 2"]


class FakeExtractor:
    def __init__(self):
        self.calls = []

    async def extract_structured_fields(self, data, mime_type, known_categories):
        self.calls.append((data, mime_type, list(known_categories)))
        return [ExtractedItem(name="Router", category="Electronics", quantity=2, serial_number="R1, R2")]


def test_upload_invoice_uses_extractor(client, admin_headers):
    client.post("/categories", json={"name": "Electronics"}, headers=admin_headers)
    fake = FakeExtractor()
    app.dependency_overrides[get_extractor] = lambda: fake

    resp = client.post(
        "/inventory/upload-invoice",
        files={"invoice": ("invoice.png", b"\x89PNG fake", "image/png")},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    items = resp.json()["items"]
    assert items[0]["name"] == "Router"
    assert items[0]["serialNumber"] == "R1, R2"
    assert items[0]["minStock"] == 5
    assert fake.calls == [(b"\x89PNG fake", "image/png", ["Electronics"])]


def test_upload_invoice_without_api_key(client, admin_headers):
    resp = client.post(
        "/inventory/upload-invoice",
        files={"invoice": ("invoice.pdf", b"%PDF", "application/pdf")},
        headers=admin_headers,
    )
    assert resp.status_code == 502
    assert "GEMINI_API_KEY" in resp.json()["message"]


def test_categories_crud(client, admin_headers):
    created = client.post("/categories", json={"name": "Furniture", "description": "Desks"}, headers=admin_headers)
    assert created.status_code == 201
    dup = client.post("/categories", json={"name": "furniture"}, headers=admin_headers)
    assert dup.status_code == 400

    listed = client.get("/categories", headers=admin_headers).json()
    assert [c["name"] for c in listed] == ["Furniture"]

    cid = created.json()["id"]
    assert client.delete(f"/categories/{cid}", headers=admin_headers).status_code == 200
    assert client.delete(f"/categories/{cid}", headers=admin_headers).status_code == 404
