from app.shared.database.models import AuditLog, Warehouse
from app.shared.services.cache_service import cache_service
from app.shared.services.capacity_ledger import CapacityLedger
from tests.conftest import auth_headers

NEW_WAREHOUSE = {
    "name": "Pune Dry Depot",
    "location": "Chakan MIDC",
    "city": "Pune",
    "state": "Maharashtra",
    "storage_type": "dry_storage",
    "total_space": 5000,
    "price_per_sqft": 6.5,
    "features": ["Forklifts"]
}


def test_catalogue_filters(client, customer, warehouse):
    client.post("/api/v1/warehouses/", headers=auth_headers(warehouse.owner), json=NEW_WAREHOUSE)
    headers = auth_headers(customer)

    assert client.get("/api/v1/warehouses/", headers=headers).json()["total"] == 2
    body = client.get("/api/v1/warehouses/?city=pun", headers=headers).json()
    assert [w["name"] for w in body["items"]] == ["Pune Dry Depot"]
    body = client.get("/api/v1/warehouses/?min_space=2000", headers=headers).json()
    assert [w["name"] for w in body["items"]] == ["Pune Dry Depot"]
    body = client.get("/api/v1/warehouses/?sort_by=price&sort_order=desc", headers=headers).json()
    assert [w["name"] for w in body["items"]] == ["Bhiwandi Cold Hub", "Pune Dry Depot"]


def test_invalid_sort_field(client, customer):
    response = client.get("/api/v1/warehouses/?sort_by=owner", headers=auth_headers(customer))
    assert response.status_code == 400


def test_create_defaults_available_space_and_owner(client, warehouse_user):
    response = client.post("/api/v1/warehouses/", headers=auth_headers(warehouse_user), json=NEW_WAREHOUSE)
    assert response.status_code == 201
    body = response.json()
    assert body["available_space"] == 5000
    assert body["owner_id"] == warehouse_user.id


def test_available_space_cannot_exceed_total(client, warehouse_user):
    response = client.post(
        "/api/v1/warehouses/",
        headers=auth_headers(warehouse_user),
        json={**NEW_WAREHOUSE, "available_space": 6000}
    )
    assert response.status_code == 400


def test_customer_cannot_create(client, customer):
    assert client.post("/api/v1/warehouses/", headers=auth_headers(customer), json=NEW_WAREHOUSE).status_code == 403


def test_admin_assigns_owner(client, admin, warehouse_user, supervisor):
    response = client.post(
        "/api/v1/warehouses/",
        headers=auth_headers(admin),
        json={**NEW_WAREHOUSE, "owner_id": warehouse_user.id}
    )
    assert response.json()["owner_id"] == warehouse_user.id

    response = client.post(
        "/api/v1/warehouses/",
        headers=auth_headers(admin),
        json={**NEW_WAREHOUSE, "owner_id": supervisor.id}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_OWNER"


def test_only_owner_updates(client, make_user, warehouse):
    intruder = make_user("warehouse")
    response = client.put(f"/api/v1/warehouses/{warehouse.id}", headers=auth_headers(intruder), json={"name": "Mine"})
    assert response.status_code == 403
    assert response.json()["error"] == "OWNERSHIP_VIOLATION"


def test_total_space_change_shifts_available(client, db, warehouse):
    warehouse.available_space = 400
    db.commit()

    response = client.put(
        f"/api/v1/warehouses/{warehouse.id}",
        headers=auth_headers(warehouse.owner),
        json={"total_space": 1500}
    )
    assert response.status_code == 200
    assert response.json()["available_space"] == 900

    # 600 already reserved; shrinking below that is rejected
    response = client.put(
        f"/api/v1/warehouses/{warehouse.id}",
        headers=auth_headers(warehouse.owner),
        json={"total_space": 500}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_CAPACITY_ADJUSTMENT"


def test_soft_delete_hides_from_catalogue(client, db, customer, warehouse):
    response = client.delete(f"/api/v1/warehouses/{warehouse.id}", headers=auth_headers(warehouse.owner))
    assert response.status_code == 200
    assert client.get("/api/v1/warehouses/", headers=auth_headers(customer)).json()["total"] == 0
    db.expire_all()
    assert db.query(Warehouse).count() == 1


def test_catalogue_cache_is_invalidated_by_bookings(client, customer, warehouse, make_quote, booking_payload):
    headers = auth_headers(customer)
    before = client.get("/api/v1/warehouses/", headers=headers).json()
    assert before["items"][0]["available_space"] == 1000

    quote = make_quote(status="quoted", required_space=250)
    client.post("/api/v1/bookings/", headers=headers, json=booking_payload(quote))

    after = client.get("/api/v1/warehouses/", headers=headers).json()
    assert after["items"][0]["available_space"] == 750


def test_ledger_write_clears_catalogue_cache_only_after_commit(db, warehouse):
    ledger = CapacityLedger(db)
    cache_service.set_warehouses("all", {"available_space": 1000})

    assert ledger.reserve(warehouse.id, 300) is True
    assert cache_service.get_warehouses("all") is not None

    db.commit()
    assert cache_service.get_warehouses("all") is None


def test_rolled_back_ledger_write_keeps_catalogue_cache(db, warehouse):
    ledger = CapacityLedger(db)
    assert ledger.reserve(warehouse.id, 300) is True
    db.rollback()

    cache_service.set_warehouses("all", {"available_space": 1000})
    db.commit()
    assert cache_service.get_warehouses("all") == {"available_space": 1000}


def test_availability(client, customer, warehouse):
    url = f"/api/v1/warehouses/{warehouse.id}/availability"
    assert client.post(url, headers=auth_headers(customer), json={"required_space": 1000}).json()["available"] is True
    assert client.post(url, headers=auth_headers(customer), json={"required_space": 1001}).json()["available"] is False


def test_adjust_capacity_is_bounded_and_audited(client, db, admin, warehouse):
    url = f"/api/v1/warehouses/{warehouse.id}/adjust-capacity"
    response = client.post(url, headers=auth_headers(admin), json={"delta": -300, "reason": "Racking repair"})
    assert response.status_code == 200
    assert response.json()["available_space"] == 700
    assert db.query(AuditLog).filter(AuditLog.action == "warehouse.adjust_capacity").count() == 1

    response = client.post(url, headers=auth_headers(admin), json={"delta": 500})
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_CAPACITY_ADJUSTMENT"


def test_adjust_capacity_is_admin_only(client, warehouse):
    url = f"/api/v1/warehouses/{warehouse.id}/adjust-capacity"
    assert client.post(url, headers=auth_headers(warehouse.owner), json={"delta": 10}).status_code == 403
