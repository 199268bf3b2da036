def test_category_crud(client, owner_headers):
    created = client.post(
        "/api/categories",
        headers=owner_headers,
        json={"name": "  Weddings ", "color": "rose", "description": "   "},
    )
    assert created.status_code == 201
    category = created.json()
    assert category["name"] == "Weddings"
    assert category["description"] is None

    updated = client.put(
        f"/api/categories/{category['id']}",
        headers=owner_headers,
        json={"name": "Weddings & Events", "color": "gold"},
    )
    assert updated.status_code == 200
    assert updated.json()["color"] == "gold"

    listed = client.get("/api/categories", headers=owner_headers)
    assert [item["name"] for item in listed.json()] == ["Weddings & Events"]

    deleted = client.delete(f"/api/categories/{category['id']}", headers=owner_headers)
    assert deleted.status_code == 204
    assert client.get("/api/categories", headers=owner_headers).json() == []


def test_duplicate_category_name_is_409(client, owner_headers):
    client.post("/api/categories", headers=owner_headers, json={"name": "Portraits"})

    response = client.post("/api/categories", headers=owner_headers, json={"name": "Portraits"})

    assert response.status_code == 409
    assert response.json()["detail"] == "A category with this name already exists"


def test_deleting_category_detaches_event_types(client, owner_headers, make_event_type):
    category = client.post("/api/categories", headers=owner_headers, json={"name": "Portraits"}).json()
    event_type = make_event_type(category_id=category["id"])
    assert event_type["category_id"] == category["id"]

    client.delete(f"/api/categories/{category['id']}", headers=owner_headers)

    refreshed = client.get(f"/api/event-types/{event_type['id']}", headers=owner_headers).json()
    assert refreshed["category_id"] is None


def test_event_type_cannot_use_foreign_category(client, register_owner, owner_headers):
    category = client.post("/api/categories", headers=owner_headers, json={"name": "Mine"}).json()

    response = client.post(
        "/api/event-types",
        headers=register_owner("other@example.com"),
        json={"title": "Sneaky", "category_id": category["id"]},
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Category not found"
