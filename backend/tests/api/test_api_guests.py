"""
客人管理 API 测试
"""
from fastapi.testclient import TestClient

from hoteltrack.models.ontology import Guest


class TestGuests:

    def test_create_and_get(self, client: TestClient, staff_headers):
        response = client.post("/guests", headers=staff_headers, json={
            "full_name": "Maria Santos", "age": 25, "contact": "09181234567", "email": ""
        })
        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "added"

        guest = client.get(f"/guests/{data['id']}", headers=staff_headers).json()
        assert guest["full_name"] == "Maria Santos"
        assert guest["email"] is None

    def test_underage(self, client: TestClient, staff_headers):
        response = client.post("/guests", headers=staff_headers, json={"full_name": "Kid", "age": 16})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "age"

    def test_bad_contact(self, client: TestClient, staff_headers):
        response = client.post("/guests", headers=staff_headers, json={
            "full_name": "Maria", "age": 25, "contact": "12345"
        })
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "contact"

    def test_missing_name(self, client: TestClient, staff_headers):
        response = client.post("/guests", headers=staff_headers, json={"age": 25})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "missing"

    def test_update_unknown(self, client: TestClient, staff_headers):
        response = client.put("/guests/9999", headers=staff_headers, json={"full_name": "X", "age": 30})
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "notfound"

    def test_list(self, client: TestClient, staff_headers, sample_guest):
        response = client.get("/guests", headers=staff_headers)
        assert response.status_code == 200
        assert [g["id"] for g in response.json()] == [sample_guest.id]

    def test_requires_sign_in(self, client: TestClient):
        assert client.get("/guests").status_code == 401


class TestDeleteGuest:

    def test_staff_delete_becomes_request(self, client: TestClient, staff_headers, admin_headers,
                                          db_session, sample_guest):
        response = client.delete(f"/guests/{sample_guest.id}", headers=staff_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "requested"
        assert data["approval_request_id"] is not None
        assert db_session.get(Guest, sample_guest.id) is not None
        assert client.get("/approval-count", headers=staff_headers).json() == {"count": 1}

    def test_admin_delete(self, client: TestClient, admin_headers, db_session, sample_guest):
        guest_id = sample_guest.id
        response = client.delete(f"/guests/{guest_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["outcome"] == "deleted"
        assert client.get(f"/guests/{guest_id}", headers=admin_headers).status_code == 404
