def _manual(client, headers, event_type, day, start="10:00:00Z", **overrides):
    payload = {
        "event_type_id": event_type["id"],
        "start_at": f"{day.isoformat()}T{start}",
        "client_name": "Walk In",
        "client_email": "walk.in@example.com",
    }
    payload.update(overrides)
    return client.post("/api/bookings", headers=headers, json=payload)


def test_manual_booking_derives_end_from_duration(client, owner_headers, make_event_type, booking_day):
    event_type = make_event_type(duration_minutes=45, buffer_after_minutes=15)

    response = _manual(client, owner_headers, event_type, booking_day)

    assert response.status_code == 201
    body = response.json()
    assert body["start_at"].startswith(f"{booking_day.isoformat()}T10:00:00")
    assert body["end_at"].startswith(f"{booking_day.isoformat()}T10:45:00")
    assert body["status"] == "confirmed"
    assert body["timezone"] == "UTC"


def test_naive_manual_start_is_read_in_given_timezone(client, owner_headers, make_event_type, booking_day):
    event_type = make_event_type()

    response = _manual(client, owner_headers, event_type, booking_day, start="10:00:00", timezone="Asia/Tokyo")

    assert response.status_code == 201
    body = response.json()
    assert body["start_at"].startswith(f"{booking_day.isoformat()}T01:00:00")
    assert body["booking_date"] == booking_day.isoformat()


def test_manual_booking_respects_existing_bookings(
    client, owner_headers, make_event_type, open_day, booking_day, booking_payload
):
    event_type = make_event_type()
    open_day(booking_day)
    client.post("/api/public/bookings", json=booking_payload(event_type, booking_day))

    response = _manual(client, owner_headers, event_type, booking_day, start="10:15:00Z")

    assert response.status_code == 409
    assert response.json()["code"] == "slot_taken"


def test_cancelled_booking_frees_its_slot(
    client, owner_headers, make_event_type, open_day, booking_day, booking_payload
):
    event_type = make_event_type()
    open_day(booking_day)
    booking_id = client.post("/api/public/bookings", json=booking_payload(event_type, booking_day)).json()[
        "booking"
    ]["id"]

    cancelled = client.patch(f"/api/bookings/{booking_id}/cancel", headers=owner_headers)
    rebooked = client.post(
        "/api/public/bookings",
        json=booking_payload(event_type, booking_day, client_email="second@example.com"),
    )

    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancelled_at"] is not None
    assert rebooked.status_code == 201


def test_list_filters_by_status_and_range(client, owner_headers, make_event_type, booking_day):
    event_type = make_event_type()
    first = _manual(client, owner_headers, event_type, booking_day, start="09:00:00Z").json()
    second = _manual(client, owner_headers, event_type, booking_day, start="11:00:00Z", status="pending").json()

    pending = client.get("/api/bookings", headers=owner_headers, params={"status": "pending"}).json()
    morning = client.get(
        "/api/bookings",
        headers=owner_headers,
        params={"end": f"{booking_day.isoformat()}T10:00:00Z"},
    ).json()
    everything = client.get("/api/bookings", headers=owner_headers).json()

    assert [item["id"] for item in pending] == [second["id"]]
    assert [item["id"] for item in morning] == [first["id"]]
    assert [item["id"] for item in everything] == [first["id"], second["id"]]


def test_calendar_file_download(client, owner_headers, make_event_type, booking_day):
    event_type = make_event_type(locations=[{"type": "in_person", "address": "1 Main St"}])
    booking = _manual(client, owner_headers, event_type, booking_day).json()

    response = client.get(f"/api/bookings/{booking['id']}/calendar.ics", headers=owner_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    assert f'filename="booking-{booking["id"]}.ics"' in response.headers["content-disposition"]
    assert "SUMMARY:Portrait Session with Walk In" in response.text
    assert "LOCATION:1 Main St" in response.text


def test_booking_of_another_owner_is_404(client, owner_headers, register_owner, make_event_type, booking_day):
    event_type = make_event_type()
    booking = _manual(client, owner_headers, event_type, booking_day).json()
    stranger = register_owner("stranger@example.com")

    assert client.get(f"/api/bookings/{booking['id']}", headers=stranger).status_code == 404
    assert client.patch(f"/api/bookings/{booking['id']}/cancel", headers=stranger).status_code == 404
