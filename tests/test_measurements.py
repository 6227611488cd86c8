import json

import pytest
from conftest import auth_headers

from sybertailor.domain.measurements.schemas import parse_measurement_data

PHOTO = {"photo": ("front.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")}


def create(client, user, files=None, **fields):
    form = {"name": "Wedding suit", "unit": "in", "data": json.dumps({"chest": 40, "waist": "32.5"})}
    form.update(fields)
    return client.post("/api/measurements", data=form, files=files, headers=auth_headers(user))


class TestParseData:
    def test_numbers_and_numeric_strings(self):
        assert parse_measurement_data('{"chest": 40, "waist": "32.5"}') == {"chest": 40.0, "waist": 32.5}

    def test_empty_means_no_values(self):
        assert parse_measurement_data("") == {}
        assert parse_measurement_data(None) == {}

    @pytest.mark.parametrize("raw", ["[1, 2]", "not json", '{"chest": "wide"}', '{"chest": true}', '{"chest": null}'])
    def test_rejects_non_numeric_data(self, raw):
        with pytest.raises(ValueError):
            parse_measurement_data(raw)


class TestOwnerMeasurements:
    def test_create_and_fetch(self, client, user):
        response = create(client, user)

        assert response.status_code == 201, response.text
        created = response.json()
        assert created["data"] == {"chest": 40.0, "waist": 32.5}
        assert created["unit"] == "in"

        fetched = client.get(f"/api/measurements/{created['id']}", headers=auth_headers(user))
        assert fetched.json()["name"] == "Wedding suit"

    def test_photo_is_stored(self, client, user, storage):
        response = create(client, user, files=PHOTO)

        assert response.status_code == 201
        assert response.json()["photoUrl"] == "https://cdn.test/measurements/image-1.jpg"

    def test_bad_data_is_rejected(self, client, user):
        response = create(client, user, data='{"chest": "broad"}')

        assert response.status_code == 400

    def test_bad_unit_is_rejected(self, client, user):
        response = create(client, user, unit="yards")

        assert response.status_code == 400

    def test_has_measurement(self, client, user):
        assert client.get("/api/measurements/has", headers=auth_headers(user)).json() == {"hasMeasurement": False}

        create(client, user)

        assert client.get("/api/measurements/has", headers=auth_headers(user)).json() == {"hasMeasurement": True}

    def test_other_users_measurement_is_404(self, client, user, other_user):
        created = create(client, user).json()

        for method in ("get", "delete"):
            response = getattr(client, method)(f"/api/measurements/{created['id']}", headers=auth_headers(other_user))
            assert response.status_code == 404
        update = client.put(
            f"/api/measurements/{created['id']}", data={"name": "Mine now"}, headers=auth_headers(other_user)
        )
        assert update.status_code == 404

    def test_update_replaces_photo(self, client, user, storage):
        created = create(client, user, files=PHOTO).json()

        response = client.put(
            f"/api/measurements/{created['id']}",
            data={"name": "Renamed"},
            files=PHOTO,
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["photoUrl"].endswith("image-2.jpg")
        assert storage.deleted == ["measurements/image-1.jpg"]

    def test_delete(self, client, user, storage):
        created = create(client, user, files=PHOTO).json()

        response = client.delete(f"/api/measurements/{created['id']}", headers=auth_headers(user))

        assert response.json() == {"message": "Measurement deleted"}
        assert client.get("/api/measurements", headers=auth_headers(user)).json() == []
        assert storage.deleted == ["measurements/image-1.jpg"]


class TestAdminMeasurements:
    def test_list_with_filters_and_owner(self, client, user, other_user, admin):
        create(client, user)
        create(client, other_user, unit="cm", name="Kaftan")

        everything = client.get("/api/measurements/admin?unit=All", headers=auth_headers(admin)).json()
        in_cm = client.get("/api/measurements/admin?unit=cm", headers=auth_headers(admin)).json()

        assert everything["pagination"]["total"] == 2
        assert [m["name"] for m in in_cm["measurements"]] == ["Kaftan"]
        assert in_cm["measurements"][0]["user"]["email"] == other_user.email

    def test_search_by_owner_name(self, client, user, other_user, admin):
        create(client, user)
        create(client, other_user, name="Kaftan")

        found = client.get("/api/measurements/admin?search=Bayo", headers=auth_headers(admin)).json()

        assert [m["name"] for m in found["measurements"]] == ["Kaftan"]

    def test_admin_get_update_delete(self, client, user, admin):
        created = create(client, user).json()

        fetched = client.get(f"/api/measurements/admin/{created['id']}", headers=auth_headers(admin))
        assert fetched.json()["message"] == "Measurement retrieved successfully"

        updated = client.put(
            f"/api/measurements/admin/{created['id']}", data={"size": "XL"}, headers=auth_headers(admin)
        )
        assert updated.json()["measurement"]["size"] == "XL"

        deleted = client.delete(f"/api/measurements/admin/{created['id']}", headers=auth_headers(admin))
        assert deleted.status_code == 200
        assert client.get(f"/api/measurements/admin/{created['id']}", headers=auth_headers(admin)).status_code == 404

    def test_regular_user_is_forbidden(self, client, user):
        assert client.get("/api/measurements/admin", headers=auth_headers(user)).status_code == 403
