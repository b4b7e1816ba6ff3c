import pytest

from .conftest import OTHER_SHIPPER, load_payload, shipper_headers, trucker_headers

LOADS = "/api/v1/loads"


def _create(client, headers=None, **overrides):
    response = client.post(LOADS, json=load_payload(**overrides), headers=headers or shipper_headers())
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_health(client):
    assert client.get("/").json() == {"message": "ok"}


def test_requests_without_actor_are_unauthorized(client):
    response = client.get(LOADS)

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_unknown_role_is_unauthorized(client):
    response = client.get(LOADS, headers={"X-Actor-Id": "x", "X-Actor-Role": "pirate"})

    assert response.status_code == 401


def test_trucker_cannot_create_loads(client):
    response = client.post(LOADS, json=load_payload(), headers=trucker_headers())

    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "error": "User role trucker is not authorized to access this route",
    }


def test_create_load(client):
    data = _create(client, dimensions={"length": 13.6, "width": 2.45, "height": 2.6})

    assert data["status"] == "open"
    assert data["shipperId"] == "shipper-1"
    assert data["assignedTruckerId"] is None
    assert data["acceptedBidId"] is None
    assert data["specialRequirements"] == ["frío", "trampilla"]
    assert data["dimensions"]["length"] == 13.6


def test_create_load_defaults_to_draft(client):
    payload = load_payload()
    del payload["status"]

    response = client.post(LOADS, json=payload, headers=shipper_headers())

    assert response.json()["data"]["status"] == "pending"


def test_create_load_validation_error(client):
    payload = load_payload()
    payload["weight"] = -1
    del payload["title"]

    response = client.post(LOADS, json=payload, headers=shipper_headers())

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "title" in body["error"]
    assert "weight" in body["error"]


def test_create_load_delivery_before_pickup(client):
    payload = load_payload()
    payload["deliveryDate"], payload["pickupDate"] = payload["pickupDate"], payload["deliveryDate"]

    response = client.post(LOADS, json=payload, headers=shipper_headers())

    assert response.status_code == 400
    assert "deliveryDate" in response.json()["error"]


def test_get_load(client):
    load = _create(client)

    response = client.get(f"{LOADS}/{load['id']}", headers=trucker_headers())

    assert response.status_code == 200
    assert response.json()["data"]["id"] == load["id"]


def test_get_unknown_load(client):
    response = client.get(f"{LOADS}/nope", headers=shipper_headers())

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Load not found with id of nope"}


def test_list_loads_paginates(client):
    for i in range(3):
        _create(client, title=f"Carga {i}")

    first = client.get(LOADS, params={"page": 1, "limit": 2}, headers=shipper_headers()).json()
    assert first["count"] == 2
    assert first["total"] == 3
    assert first["pagination"]["next"] == {"page": 2, "limit": 2}
    assert first["pagination"]["prev"] is None

    second = client.get(LOADS, params={"page": 2, "limit": 2}, headers=shipper_headers()).json()
    assert second["count"] == 1
    assert second["pagination"]["next"] is None
    assert second["pagination"]["prev"] == {"page": 1, "limit": 2}


def test_list_loads_filters(client):
    _create(client, load_type="flatbed")
    _create(client, status="pending")
    _create(client, headers=shipper_headers(OTHER_SHIPPER))

    flatbed = client.get(LOADS, params={"loadType": "flatbed"}, headers=shipper_headers()).json()
    assert flatbed["total"] == 1

    drafts = client.get(LOADS, params={"status": "pending"}, headers=shipper_headers()).json()
    assert [x["status"] for x in drafts["data"]] == ["pending"]

    other = client.get(LOADS, params={"shipper": OTHER_SHIPPER}, headers=shipper_headers()).json()
    assert other["total"] == 1


def test_my_loads_and_available_loads(client):
    open_load = _create(client)
    _create(client, status="pending")
    _create(client, headers=shipper_headers(OTHER_SHIPPER))

    mine = client.get(f"{LOADS}/shipper/me", headers=shipper_headers()).json()
    assert mine["count"] == 2

    available = client.get(f"{LOADS}/available", headers=trucker_headers()).json()
    ids = [x["id"] for x in available["data"]]
    assert open_load["id"] in ids
    assert all(x["status"] == "open" for x in available["data"])
    assert available["count"] == 2


def test_update_and_publish_load(client):
    load = _create(client, status="pending")

    response = client.put(
        f"{LOADS}/{load['id']}",
        json={"budget": 1100.0, "status": "open"},
        headers=shipper_headers(),
    )

    assert response.status_code == 200
    assert response.json()["data"]["budget"] == 1100.0
    assert response.json()["data"]["status"] == "open"


def test_update_cannot_force_status(client):
    load = _create(client)

    response = client.put(
        f"{LOADS}/{load['id']}",
        json={"status": "completed"},
        headers=shipper_headers(),
    )

    assert response.status_code == 400


def test_update_cannot_touch_linkage_fields(client):
    load = _create(client)

    response = client.put(
        f"{LOADS}/{load['id']}",
        json={"assignedTruckerId": "trucker-a"},
        headers=shipper_headers(),
    )

    assert response.status_code == 400


def test_update_by_other_shipper_is_forbidden(client):
    load = _create(client)

    response = client.put(
        f"{LOADS}/{load['id']}",
        json={"budget": 1.0},
        headers=shipper_headers(OTHER_SHIPPER),
    )

    assert response.status_code == 403


def test_delete_load(client):
    load = _create(client)

    response = client.delete(f"{LOADS}/{load['id']}", headers=shipper_headers())
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {}}

    assert client.get(f"{LOADS}/{load['id']}", headers=shipper_headers()).status_code == 404


@pytest.mark.parametrize(
    "field",
    ["title", "pickupDate", "deliveryDate", "weight", "budget", "biddingDeadline", "specialRequirements", "status"],
)
def test_update_cannot_null_required_fields(client, field):
    load = _create(client)

    response = client.put(f"{LOADS}/{load['id']}", json={field: None}, headers=shipper_headers())

    assert response.status_code == 400
    assert response.json()["success"] is False

    unchanged = client.get(f"{LOADS}/{load['id']}", headers=shipper_headers()).json()["data"]
    assert unchanged[field] == load[field]


def test_update_can_clear_optional_fields(client):
    load = _create(client, dimensions={"length": 13.6})

    response = client.put(
        f"{LOADS}/{load['id']}",
        json={"dimensions": None, "pickupLat": None},
        headers=shipper_headers(),
    )

    assert response.status_code == 200
    assert response.json()["data"]["dimensions"] is None
