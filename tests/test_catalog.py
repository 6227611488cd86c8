from conftest import auth_headers

IMAGE = {"image": ("agbada.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")}


def add_style(client, admin, **fields):
    form = {
        "title": "Grand Agbada",
        "gender": "Male",
        "price": "25000",
        "yardsRequired": "6",
        "type": "Agbada, Traditional",
        "ageGroup": "Adult",
        "recommendedMaterials": "Aso-oke,Brocade",
    }
    form.update(fields)
    return client.post("/api/styles", data=form, files=IMAGE, headers=auth_headers(admin))


def add_fabric(client, admin, **fields):
    form = {"title": "Royal Lace", "material": "Silk", "color": "Purple", "quality": "High", "price": "4500"}
    form.update(fields)
    return client.post("/api/fabrics", data=form, files=IMAGE, headers=auth_headers(admin))


class TestStyles:
    def test_admin_adds_a_style(self, client, admin, storage):
        response = add_style(client, admin)

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["message"] == "Style added successfully"
        assert body["style"]["type"] == ["Agbada", "Traditional"]
        assert body["style"]["recommendedMaterials"] == ["Aso-oke", "Brocade"]
        assert body["style"]["image"] == "https://cdn.test/styles/image-1.jpg"
        assert body["style"]["addedBy"] == admin.id

    def test_duplicate_title_discards_the_upload(self, client, admin, storage):
        add_style(client, admin)

        response = add_style(client, admin)

        assert response.status_code == 400
        assert storage.deleted == ["styles/image-2.jpg"]

    def test_invalid_gender(self, client, admin):
        response = add_style(client, admin, gender="Robot")

        assert response.status_code == 400

    def test_regular_user_cannot_add(self, client, user):
        response = add_style(client, user)

        assert response.status_code == 403

    def test_public_browsing_with_filters(self, client, admin):
        add_style(client, admin)
        add_style(client, admin, title="Bubu Gown", gender="Female", type="Gown")

        everything = client.get("/api/styles").json()
        female = client.get("/api/styles?gender=Female").json()
        searched = client.get("/api/styles?search=gown").json()

        assert len(everything) == 2
        assert [s["title"] for s in female] == ["Bubu Gown"]
        assert [s["title"] for s in searched] == ["Bubu Gown"]

    def test_update_replaces_the_image(self, client, admin, storage):
        style = add_style(client, admin).json()["style"]

        response = client.put(
            f"/api/styles/{style['id']}", data={"price": "30000"}, files=IMAGE, headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["style"]["price"] == 30000
        assert response.json()["style"]["title"] == "Grand Agbada"
        assert storage.deleted == ["styles/image-1.jpg"]

    def test_delete(self, client, admin, storage):
        style = add_style(client, admin).json()["style"]

        response = client.delete(f"/api/styles/{style['id']}", headers=auth_headers(admin))

        assert response.json() == {"message": "Style removed"}
        assert client.get(f"/api/styles/{style['id']}").status_code == 404
        assert storage.deleted == ["styles/image-1.jpg"]


class TestFabrics:
    def test_admin_adds_a_fabric_with_defaults(self, client, admin):
        response = add_fabric(client, admin, color="")

        assert response.status_code == 201, response.text
        fabric = response.json()["fabric"]
        assert fabric["material"] == "Silk"
        assert fabric["color"] == "Mixed"
        assert fabric["care"] == "Machine washable"

    def test_invalid_quality(self, client, admin):
        response = add_fabric(client, admin, quality="Premium")

        assert response.status_code == 400

    def test_filter_by_material(self, client, admin):
        add_fabric(client, admin)
        add_fabric(client, admin, title="Plain Cotton", material="Cotton")

        response = client.get("/api/fabrics?material=Cotton")

        assert [f["title"] for f in response.json()] == ["Plain Cotton"]

    def test_rename_to_an_existing_title(self, client, admin):
        add_fabric(client, admin)
        other = add_fabric(client, admin, title="Plain Cotton").json()["fabric"]

        response = client.put(f"/api/fabrics/{other['id']}", data={"title": "Royal Lace"}, headers=auth_headers(admin))

        assert response.status_code == 400

    def test_missing_fabric(self, client):
        assert client.get("/api/fabrics/999").status_code == 404
