from datetime import timedelta

from conftest import PASSWORD, auth_headers, make_user

from sybertailor.models import Appointment, Order, User, utcnow


def register(client, email="new@example.com", password="sewing-time-9"):
    return client.post("/api/auth/register", json={"name": "Ngozi Okafor", "email": email, "password": password})


def stored_user(db, email):
    db.expire_all()
    return db.query(User).filter(User.email == email).first()


def login(client, email, password=PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


class TestRegistration:
    def test_register_then_verify(self, client, db, queue):
        response = register(client)

        assert response.status_code == 201
        user = stored_user(db, "new@example.com")
        assert response.json()["uniqueId"] == user.public_id
        assert not user.is_verified
        assert len(user.email_token) == 6
        assert queue.emails_to("new@example.com")

        verify = client.post("/api/auth/verify-email", json={"email": "new@example.com", "code": user.email_token})

        assert verify.status_code == 200
        assert stored_user(db, "new@example.com").is_verified

    def test_email_is_normalised_and_unique(self, client):
        register(client, email="Mixed@Example.com")

        response = register(client, email="mixed@example.com")

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already in use"

    def test_short_password_fails_validation(self, client):
        response = register(client, password="short")

        assert response.status_code == 400
        assert "password" in response.json()["errors"]

    def test_wrong_code_is_rejected(self, client):
        register(client)

        response = client.post("/api/auth/verify-email", json={"email": "new@example.com", "code": "000000x"})

        assert response.status_code == 400

    def test_expired_code_is_rejected(self, client, db):
        register(client)
        user = stored_user(db, "new@example.com")
        user.email_token_expires = utcnow() - timedelta(minutes=1)
        db.commit()

        response = client.post("/api/auth/verify-email", json={"email": "new@example.com", "code": user.email_token})

        assert response.status_code == 400

    def test_resend_emails_a_fresh_code(self, client, db, queue):
        register(client)

        response = client.post("/api/auth/resend-verification", json={"email": "new@example.com"})

        assert response.status_code == 200
        assert len(queue.emails_to("new@example.com")) == 2
        code = stored_user(db, "new@example.com").email_token
        assert code in queue.emails_to("new@example.com")[-1][2]

    def test_resend_for_verified_user_is_rejected(self, client, user):
        response = client.post("/api/auth/resend-verification", json={"email": user.email})

        assert response.status_code == 400


class TestSessions:
    def test_login_sets_both_cookies(self, client, user):
        response = login(client, user.email)

        assert response.status_code == 200
        assert response.json()["user"]["email"] == user.email
        assert "password" not in str(response.json()).lower()
        assert client.cookies.get("accessToken")
        assert client.cookies.get("refreshToken")

        me = client.get("/api/auth/me")
        assert me.json()["id"] == user.id

    def test_wrong_password(self, client, user):
        response = login(client, user.email, "not-the-password")

        assert response.status_code == 400

    def test_unverified_user_cannot_log_in(self, client, db):
        pending = make_user(db, email="pending@example.com", is_verified=False)

        response = login(client, pending.email)

        assert response.status_code == 403

    def test_refresh_rotates_the_token(self, client, user):
        login(client, user.email)
        first_token = client.cookies.get("refreshToken")

        response = client.post("/api/auth/refresh")

        assert response.status_code == 200
        rotated = client.cookies.get("refreshToken")
        assert rotated and rotated != first_token

        client.cookies.clear()
        client.cookies.set("refreshToken", first_token)
        replay = client.post("/api/auth/refresh")
        assert replay.status_code == 403

    def test_refresh_without_cookie(self, client):
        response = client.post("/api/auth/refresh")

        assert response.status_code == 401

    def test_logout_ends_the_session(self, client, db, user):
        login(client, user.email)
        refresh_token = client.cookies.get("refreshToken")

        response = client.post("/api/auth/logout")

        assert response.status_code == 204
        assert stored_user(db, user.email).refresh_token is None
        assert client.get("/api/auth/me").status_code == 401

        client.cookies.set("refreshToken", refresh_token)
        assert client.post("/api/auth/refresh").status_code == 403

    def test_bearer_header_is_accepted(self, client, user):
        response = client.get("/api/auth/me", headers=auth_headers(user))

        assert response.status_code == 200

    def test_garbage_token_is_rejected(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401


class TestPasswordReset:
    def test_reset_flow(self, client, db, user, queue):
        response = client.post("/api/auth/request-reset", json={"email": user.email})

        assert response.status_code == 200
        stored = stored_user(db, user.email)
        assert stored.reset_token
        html = queue.emails_to(user.email)[-1][2]
        assert f"id={stored.public_id}" in html

        reset = client.post(
            "/api/auth/reset-password",
            json={"id": stored.public_id, "token": stored.reset_token, "password": "brand-new-pass"},
        )

        assert reset.status_code == 200
        assert login(client, user.email, "brand-new-pass").status_code == 200
        assert stored_user(db, user.email).reset_token is None

    def test_unknown_email_looks_the_same(self, client, queue):
        response = client.post("/api/auth/request-reset", json={"email": "ghost@example.com"})

        assert response.status_code == 200
        assert queue.anonymous == []

    def test_wrong_token_is_rejected(self, client, db, user):
        client.post("/api/auth/request-reset", json={"email": user.email})
        stored = stored_user(db, user.email)

        response = client.post(
            "/api/auth/reset-password",
            json={"id": stored.public_id, "token": "wrong", "password": "brand-new-pass"},
        )

        assert response.status_code == 400

    def test_expired_token_is_rejected(self, client, db, user):
        client.post("/api/auth/request-reset", json={"email": user.email})
        stored = stored_user(db, user.email)
        stored.reset_token_expires = utcnow() - timedelta(seconds=1)
        db.commit()

        response = client.post(
            "/api/auth/reset-password",
            json={"id": stored.public_id, "token": stored.reset_token, "password": "brand-new-pass"},
        )

        assert response.status_code == 400


class TestProfile:
    def test_update_profile(self, client, user):
        response = client.put(
            "/api/auth/profile",
            json={"name": "Ada O.", "phone": "0803 123 4567", "address": "5 Marina, Lagos"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        body = response.json()["user"]
        assert body["name"] == "Ada O."
        assert body["phone"] == "08031234567"

    def test_email_taken_by_someone_else(self, client, user, other_user):
        response = client.put("/api/auth/profile", json={"email": other_user.email}, headers=auth_headers(user))

        assert response.status_code == 400


class TestAdminUsers:
    def test_regular_user_is_forbidden(self, client, user):
        assert client.get("/api/auth/admin/users", headers=auth_headers(user)).status_code == 403

    def test_list_and_search(self, client, user, other_user, admin):
        response = client.get("/api/auth/admin/users?search=bayo", headers=auth_headers(admin))

        assert response.status_code == 200
        assert [u["email"] for u in response.json()["users"]] == [other_user.email]

    def test_promote_user(self, client, user, admin):
        response = client.put(f"/api/auth/admin/users/{user.id}", json={"isAdmin": True}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["user"]["isAdmin"] is True

    def test_admin_cannot_demote_themselves(self, client, admin):
        response = client.put(f"/api/auth/admin/users/{admin.id}", json={"isAdmin": False}, headers=auth_headers(admin))

        assert response.status_code == 400

    def test_delete_user_cascades_and_keeps_appointments(self, client, db, user, admin, measurement):
        order = Order(
            user_id=user.id,
            style={"title": "Agbada", "price": 100, "yardsRequired": 1},
            material={"name": "Lace", "pricePerYard": 10},
            measurement_id=measurement.id,
        )
        appointment = Appointment(
            user_id=user.id,
            name=user.name,
            phone="08031234567",
            address="Lagos",
            date=utcnow().date(),
            time="10:00",
            scheduled_at=utcnow(),
        )
        db.add_all([order, appointment])
        db.commit()
        appointment_id = appointment.id

        response = client.delete(f"/api/auth/admin/users/{user.id}", headers=auth_headers(admin))

        assert response.status_code == 204
        db.expire_all()
        assert db.query(Order).count() == 0
        kept = db.get(Appointment, appointment_id)
        assert kept is not None and kept.user_id is None

    def test_admin_cannot_delete_themselves(self, client, admin):
        response = client.delete(f"/api/auth/admin/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400

    def test_dashboard_stats(self, client, db, user, admin):
        db.add_all(
            [
                Order(
                    user_id=user.id,
                    style={"title": "A", "price": 1000, "yardsRequired": 2},
                    material={"name": "B", "pricePerYard": 500},
                    payment_status="paid",
                    status="in-progress",
                ),
                Order(
                    user_id=user.id,
                    style={"title": "C", "price": 300, "yardsRequired": 1},
                    material={"name": "D", "pricePerYard": 100},
                ),
            ]
        )
        db.commit()

        response = client.get("/api/auth/admin/dashboard-stats", headers=auth_headers(admin))

        stats = response.json()
        assert response.status_code == 200
        assert stats["totalUsers"] == 2
        assert stats["totalOrders"] == 2
        assert stats["totalRevenue"] == 2000
        assert stats["ordersByPaymentStatus"] == {"paid": 1, "unpaid": 1}
        assert len(stats["recentOrders"]) == 2
