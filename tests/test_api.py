"""HTTP tests for the booking, court and user endpoints."""
from datetime import timedelta

from courtbook.core.security import verify_password
from courtbook.models import CourtStatus, UserRole
from courtbook.services.user_service import user_service

from tests.conftest import SLOT_DATE, as_user, make_court, make_user, slot_start

BOOKING = {"date": SLOT_DATE.isoformat(), "time": "18:00", "duration": 2, "players": 4}
PROOF = {"payment_proof_url": "https://proofs.example.com/receipt.png"}


def booking_payload(court, **overrides):
    payload = dict(BOOKING, court_id=court.id)
    payload.update(overrides)
    return payload


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_register_user_hashes_password(client, db):
    response = await client.post(
        "/users",
        json={"name": "Hamza", "email": "Hamza@Example.com", "password": "padel-4-life", "role": "owner"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "hamza@example.com"
    assert body["role"] == "owner"
    assert "password" not in body
    assert "password_hash" not in body

    user = await user_service.get_by_email(db, "hamza@example.com")
    assert user.password_hash != "padel-4-life"
    assert verify_password("padel-4-life", user.password_hash)

    duplicate = await client.post(
        "/users", json={"name": "Hamza", "email": "hamza@example.com", "password": "another-one"}
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["code"] == "EMAIL_TAKEN"

async def test_admin_can_deactivate_and_promote_users(client, db, player, admin):
    denied = await client.patch(
        f"/users/{player.id}/status", json={"is_active": False}, headers=as_user(player)
    )
    assert denied.status_code == 403

    missing = await client.patch("/users/999999/status", json={"is_active": False}, headers=as_user(admin))
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "USER_NOT_FOUND"

    deactivated = await client.patch(
        f"/users/{player.id}/status", json={"is_active": False}, headers=as_user(admin)
    )
    assert deactivated.status_code == 200
    assert deactivated.json()["is_active"] is False

    refused = await client.get("/users/me", headers=as_user(player))
    assert refused.status_code == 401
    assert refused.json()["detail"]["code"] == "ACCOUNT_DEACTIVATED"

    restored = await client.patch(
        f"/users/{player.id}/status", json={"is_active": True, "role": "owner"}, headers=as_user(admin)
    )
    assert restored.json()["is_active"] is True
    assert restored.json()["role"] == "owner"

    me = await client.get("/users/me", headers=as_user(player))
    assert me.status_code == 200
    assert me.json()["role"] == "owner"



async def test_requests_without_identity_are_rejected(client, court):
    response = await client.post("/bookings", json=booking_payload(court))

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "NOT_AUTHENTICATED"

    response = await client.get("/users/me", headers={"X-User-Id": "9999"})
    assert response.status_code == 401


async def test_create_hold(client, player, court, clock):
    response = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "hold"
    assert body["total_amount"] == "80.00"
    assert body["court"]["id"] == court.id
    assert body["user"]["id"] == player.id
    assert body["hold_expires_at"] is not None


async def test_same_slot_twice_is_a_conflict(client, player, court):
    first = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    assert first.status_code == 201

    second = await client.post(
        "/bookings", json=booking_payload(court, time="19:00", duration=1), headers=as_user(player)
    )

    assert second.status_code == 409
    detail = second.json()["detail"]
    assert detail["code"] == "SLOT_TAKEN"
    assert detail["details"]["conflicting_booking_ids"] == [first.json()["id"]]


async def test_booking_unavailable_court(client, db, owner, player):
    court = await make_court(db, owner, status=CourtStatus.MAINTENANCE)

    response = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "COURT_UNAVAILABLE"


async def test_booking_request_validation(client, player, court):
    too_long = await client.post("/bookings", json=booking_payload(court, duration=9), headers=as_user(player))
    assert too_long.status_code == 422

    past_midnight = await client.post(
        "/bookings", json=booking_payload(court, time="23:00"), headers=as_user(player)
    )
    assert past_midnight.status_code == 400
    assert past_midnight.json()["detail"]["code"] == "SLOT_CROSSES_MIDNIGHT"

    missing_court = await client.post(
        "/bookings", json=dict(BOOKING, court_id=9999), headers=as_user(player)
    )
    assert missing_court.status_code == 404
    assert missing_court.json()["detail"]["code"] == "COURT_NOT_FOUND"


async def test_full_booking_flow(client, clock, player, admin, owner, court):
    created = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    booking_id = created.json()["id"]

    clock.advance(minutes=5)
    proof = await client.put(f"/bookings/{booking_id}/payment-proof", json=PROOF, headers=as_user(player))
    assert proof.status_code == 200
    assert proof.json()["status"] == "pending_verification"

    forbidden = await client.put(
        f"/bookings/{booking_id}/verify", json={"action": "approve"}, headers=as_user(player)
    )
    assert forbidden.status_code == 403

    invalid = await client.put(f"/bookings/{booking_id}/verify", json={"action": "hmm"}, headers=as_user(admin))
    assert invalid.status_code == 400
    assert invalid.json()["detail"]["code"] == "INVALID_ACTION"

    approved = await client.put(
        f"/bookings/{booking_id}/verify", json={"action": "approve"}, headers=as_user(admin)
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "confirmed"

    again = await client.put(f"/bookings/{booking_id}/verify", json={"action": "reject"}, headers=as_user(admin))
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "BOOKING_NOT_PENDING"

    clock.set(slot_start() - timedelta(hours=3))
    cancelled = await client.put(
        f"/bookings/{booking_id}/cancel", json={"reason": "Injury"}, headers=as_user(player)
    )
    assert cancelled.status_code == 200
    body = cancelled.json()
    assert body["status"] == "cancelled"
    assert body["refund_amount"] == "40.00"
    assert body["refund_status"] == "pending"

    notifications = await client.get("/notifications", headers=as_user(player))
    titles = [n["title"] for n in notifications.json()]
    assert "Booking confirmed" in titles


async def test_cancel_too_late(client, clock, player, admin, court):
    created = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    booking_id = created.json()["id"]
    await client.put(f"/bookings/{booking_id}/payment-proof", json=PROOF, headers=as_user(player))
    await client.put(f"/bookings/{booking_id}/verify", json={"action": "approve"}, headers=as_user(admin))

    clock.set(slot_start() - timedelta(minutes=90))
    response = await client.put(f"/bookings/{booking_id}/cancel", json={}, headers=as_user(player))

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "BOOKING_NOT_CANCELLABLE"


async def test_late_payment_proof(client, clock, player, court):
    created = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    booking_id = created.json()["id"]

    clock.advance(minutes=11)
    response = await client.put(f"/bookings/{booking_id}/payment-proof", json=PROOF, headers=as_user(player))

    assert response.status_code == 410
    assert response.json()["detail"]["code"] == "HOLD_EXPIRED"

    fetched = await client.get(f"/bookings/{booking_id}", headers=as_user(player))
    assert fetched.json()["status"] == "expired"


async def test_expire_holds_endpoint(client, clock, player, admin, court):
    await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    clock.advance(minutes=11)

    denied = await client.post("/bookings/expire-holds", headers=as_user(player))
    assert denied.status_code == 403

    response = await client.post("/bookings/expire-holds", headers=as_user(admin))
    assert response.status_code == 200
    assert response.json() == {"expired": 1}

    # Slot is free again
    rebooked = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    assert rebooked.status_code == 201


async def test_booking_visibility(client, db, player, owner, admin, court):
    created = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    booking_id = created.json()["id"]
    stranger = await make_user(db, UserRole.PLAYER, name="Stranger")

    assert (await client.get(f"/bookings/{booking_id}", headers=as_user(player))).status_code == 200
    assert (await client.get(f"/bookings/{booking_id}", headers=as_user(owner))).status_code == 200
    assert (await client.get(f"/bookings/{booking_id}", headers=as_user(admin))).status_code == 200
    assert (await client.get(f"/bookings/{booking_id}", headers=as_user(stranger))).status_code == 404

    listing = await client.get("/bookings", headers=as_user(stranger))
    assert listing.json()["pagination"]["total"] == 0

    listing = await client.get("/bookings", params={"status": "hold"}, headers=as_user(owner))
    body = listing.json()
    assert body["pagination"] == {"current": 1, "pages": 1, "total": 1, "limit": 10}
    assert body["data"][0]["id"] == booking_id


async def test_booking_stats(client, player, admin, court):
    await client.post("/bookings", json=booking_payload(court), headers=as_user(player))

    response = await client.get("/bookings/stats", headers=as_user(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["total_bookings"] == 1
    assert body["status_breakdown"][0]["status"] == "hold"


async def test_admin_booking_and_delete(client, player, admin, court):
    response = await client.post(
        "/bookings/admin",
        json=dict(booking_payload(court), user_id=player.id),
        headers=as_user(admin),
    )
    assert response.status_code == 201
    assert response.json()["status"] == "confirmed"
    booking_id = response.json()["id"]

    deleted = await client.delete(f"/bookings/{booking_id}", headers=as_user(admin))
    assert deleted.status_code == 204

    missing = await client.get(f"/bookings/{booking_id}", headers=as_user(admin))
    assert missing.status_code == 404


async def test_court_lifecycle(client, owner, player):
    payload = {
        "name": "Center Court",
        "location": "Gulberg",
        "city": "Lahore",
        "price_per_hour": "30.00",
        "court_type": "Outdoor",
        "surface": "Synthetic",
    }
    denied = await client.post("/courts", json=payload, headers=as_user(player))
    assert denied.status_code == 403

    created = await client.post("/courts", json=payload, headers=as_user(owner))
    assert created.status_code == 201
    court_id = created.json()["id"]

    availability = await client.get(
        f"/courts/{court_id}/availability",
        params={"date": SLOT_DATE.isoformat(), "time": "18:00", "duration": 2},
    )
    assert availability.json()["available"] is True

    booked = await client.post(
        "/bookings",
        json=dict(BOOKING, court_id=court_id),
        headers=as_user(player),
    )
    assert booked.status_code == 201

    availability = await client.get(
        f"/courts/{court_id}/availability",
        params={"date": SLOT_DATE.isoformat(), "time": "19:00"},
    )
    assert availability.json() == {
        "court_id": court_id,
        "date": SLOT_DATE.isoformat(),
        "time": "19:00",
        "duration": 1,
        "available": False,
        "reason": "slot_taken",
    }

    slots = await client.get(f"/courts/{court_id}/slots", params={"date": SLOT_DATE.isoformat()})
    assert "18:00" not in slots.json()["slots"]
    assert "20:00" in slots.json()["slots"]

    blocked = await client.delete(f"/courts/{court_id}", headers=as_user(owner))
    assert blocked.status_code == 409
    assert blocked.json()["detail"]["code"] == "COURT_HAS_ACTIVE_BOOKINGS"


async def test_court_can_be_deleted_without_active_bookings(client, db, owner, player):
    court = await make_court(db, owner)

    not_theirs = await client.delete(f"/courts/{court.id}", headers=as_user(await make_user(db, UserRole.OWNER)))
    assert not_theirs.status_code == 404

    deleted = await client.delete(f"/courts/{court.id}", headers=as_user(owner))
    assert deleted.status_code == 204

    assert (await client.get(f"/courts/{court.id}")).status_code == 404

async def test_deleting_a_court_keeps_past_bookings(client, clock, db, owner, player, admin):
    court = await make_court(db, owner)
    created = await client.post("/bookings", json=booking_payload(court), headers=as_user(player))
    booking_id = created.json()["id"]
    await client.put(f"/bookings/{booking_id}/payment-proof", json=PROOF, headers=as_user(player))
    await client.put(f"/bookings/{booking_id}/verify", json={"action": "approve"}, headers=as_user(admin))
    clock.set(slot_start() - timedelta(hours=30))
    cancelled = await client.put(f"/bookings/{booking_id}/cancel", json={}, headers=as_user(player))
    assert cancelled.json()["refund_status"] == "pending"

    deleted = await client.delete(f"/courts/{court.id}", headers=as_user(owner))
    assert deleted.status_code == 204

    kept = await client.get(f"/bookings/{booking_id}", headers=as_user(admin))
    assert kept.status_code == 200
    body = kept.json()
    assert body["court_id"] is None
    assert body["court"] is None
    assert body["status"] == "cancelled"
    assert body["refund_status"] == "pending"
    assert body["refund_amount"] == "80.00"

    history = await client.get("/bookings", headers=as_user(player))
    assert [b["id"] for b in history.json()["data"]] == [booking_id]


async def test_court_update_rejects_nulls_and_empty_names(client, db, owner):
    court = await make_court(db, owner)

    for payload in ({"name": None}, {"name": ""}, {"location": None}, {"price_per_hour": None}, {"status": None}):
        response = await client.patch(f"/courts/{court.id}", json=payload, headers=as_user(owner))
        assert response.status_code == 422, payload

    unchanged = await client.get(f"/courts/{court.id}")
    assert unchanged.json()["name"] == "Court X"
    assert unchanged.json()["status"] == "Available"

    cleared = await client.patch(f"/courts/{court.id}", json={"city": None}, headers=as_user(owner))
    assert cleared.status_code == 200
    assert cleared.json()["city"] is None


async def test_court_update_validates_operating_hours(client, db, owner):
    court = await make_court(db, owner)

    for hours in (
        {"sunday": {"open": "8am", "close": "late"}},
        {"sunday": {"open": "22:00", "close": "08:00"}},
        {"someday": {"open": "08:00", "close": "22:00"}},
    ):
        response = await client.patch(
            f"/courts/{court.id}", json={"operating_hours": hours}, headers=as_user(owner)
        )
        assert response.status_code == 422, hours

    slots = await client.get(f"/courts/{court.id}/slots", params={"date": SLOT_DATE.isoformat()})
    assert slots.status_code == 200
    assert slots.json()["slots"][0] == "06:00"

    late = await client.patch(
        f"/courts/{court.id}",
        json={"operating_hours": {"Sunday": {"open": "20:00", "close": "00:00"}}},
        headers=as_user(owner),
    )
    assert late.status_code == 200

    slots = await client.get(f"/courts/{court.id}/slots", params={"date": SLOT_DATE.isoformat()})
    assert slots.json()["slots"] == ["20:00", "21:00", "22:00", "23:00"]



async def test_court_updates(client, db, owner, admin):
    court = await make_court(db, owner)

    updated = await client.patch(
        f"/courts/{court.id}", json={"status": "Maintenance"}, headers=as_user(owner)
    )
    assert updated.status_code == 200
    assert updated.json()["status"] == "Maintenance"

    featured = await client.patch(
        f"/courts/{court.id}/featured", json={"is_featured": True}, headers=as_user(admin)
    )
    assert featured.json()["is_featured"] is True

    listing = await client.get("/courts", params={"featured": True})
    assert [c["id"] for c in listing.json()] == [court.id]


async def test_notifications_can_be_marked_read(client, owner, player, court):
    await client.post("/bookings", json=booking_payload(court), headers=as_user(player))

    unread = await client.get("/notifications", params={"unread_only": True}, headers=as_user(owner))
    notification_id = unread.json()[0]["id"]

    marked = await client.patch(f"/notifications/{notification_id}/read", headers=as_user(owner))
    assert marked.status_code == 200
    assert marked.json()["read"] is True

    not_mine = await client.patch(f"/notifications/{notification_id}/read", headers=as_user(player))
    assert not_mine.status_code == 404

    unread = await client.get("/notifications", params={"unread_only": True}, headers=as_user(owner))
    assert unread.json() == []


async def test_tournament_registration_flow(client, db, clock, player, admin):
    organizer = await make_user(db, UserRole.ORGANIZER, name="Organizer")
    now = clock.now()
    created = await client.post(
        "/tournaments",
        json={
            "title": "Winter Cup",
            "location": "Karachi Padel Arena",
            "start_date": (now + timedelta(days=14)).isoformat(),
            "end_date": (now + timedelta(days=15)).isoformat(),
            "registration_deadline": (now + timedelta(days=7)).isoformat(),
            "entry_fee": "20.00",
            "skill_level": "Beginner",
        },
        headers=as_user(organizer),
    )
    assert created.status_code == 201
    tournament_id = created.json()["id"]

    assert (await client.get("/tournaments")).json() == []

    approved = await client.put(f"/tournaments/{tournament_id}/approve", headers=as_user(admin))
    assert approved.json()["is_approved"] is True

    registration = {
        "name": "Player One",
        "email": "one@example.com",
        "phone": "0300 1234567",
        "skill_level": "Beginner",
    }
    first = await client.post(
        f"/tournaments/{tournament_id}/registrations", json=registration, headers=as_user(player)
    )
    assert first.status_code == 201

    duplicate = await client.post(
        f"/tournaments/{tournament_id}/registrations",
        json=dict(registration, email="ONE@example.com"),
        headers=as_user(player),
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["code"] == "DUPLICATE_REGISTRATION"

    paid = await client.patch(
        f"/registrations/{first.json()['id']}/payment",
        json={"payment_status": "paid"},
        headers=as_user(organizer),
    )
    assert paid.json()["status"] == "confirmed"


async def test_tournament_edit_status_and_delete(client, db, clock, player, admin):
    organizer = await make_user(db, UserRole.ORGANIZER, name="Organizer")
    now = clock.now()
    payload = {
        "title": "Spring Ladder",
        "location": "Islamabad Padel Hub",
        "start_date": (now + timedelta(days=14)).isoformat(),
        "end_date": (now + timedelta(days=15)).isoformat(),
        "registration_deadline": (now + timedelta(days=7)).isoformat(),
        "entry_fee": "15.00",
        "skill_level": "Advanced",
    }
    tournament_id = (await client.post("/tournaments", json=payload, headers=as_user(organizer))).json()["id"]
    await client.put(f"/tournaments/{tournament_id}/approve", headers=as_user(admin))

    denied = await client.patch(f"/tournaments/{tournament_id}", json={"title": "x"}, headers=as_user(player))
    assert denied.status_code == 403

    nulled = await client.patch(f"/tournaments/{tournament_id}", json={"title": None}, headers=as_user(organizer))
    assert nulled.status_code == 422

    edited = await client.patch(
        f"/tournaments/{tournament_id}", json={"title": "Spring Ladder II"}, headers=as_user(organizer)
    )
    assert edited.status_code == 200
    assert edited.json()["title"] == "Spring Ladder II"
    assert edited.json()["is_approved"] is False

    await client.put(f"/tournaments/{tournament_id}/approve", headers=as_user(admin))
    started = await client.patch(
        f"/tournaments/{tournament_id}/status", json={"status": "ongoing"}, headers=as_user(organizer)
    )
    assert started.json()["status"] == "ongoing"

    closed = await client.post(
        f"/tournaments/{tournament_id}/registrations",
        json={"name": "Late", "email": "late@example.com", "phone": "0300", "skill_level": "Advanced"},
        headers=as_user(player),
    )
    assert closed.status_code == 409
    assert closed.json()["detail"]["details"]["reason"] == "not_upcoming"

    backwards = await client.patch(
        f"/tournaments/{tournament_id}/status", json={"status": "upcoming"}, headers=as_user(organizer)
    )
    assert backwards.status_code == 409
    assert backwards.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

    not_deletable = await client.delete(f"/tournaments/{tournament_id}", headers=as_user(organizer))
    assert not_deletable.status_code == 409
    assert not_deletable.json()["detail"]["code"] == "TOURNAMENT_NOT_MODIFIABLE"

    fresh_id = (await client.post("/tournaments", json=payload, headers=as_user(organizer))).json()["id"]
    deleted = await client.delete(f"/tournaments/{fresh_id}", headers=as_user(organizer))
    assert deleted.status_code == 204
    assert (await client.get(f"/tournaments/{fresh_id}")).status_code == 404
