"""End-to-end tests for the ``/api/user`` endpoints."""

from __future__ import annotations

from tests.factories.user import UserFactory
from tests.helpers.http import build_url, create_payload, json_headers
from useradmin.repositories.user import UserRepository
from useradmin.services._shared.context import ServiceContext

BASE = "/api/user/"


class TestCreateAndFetch:
    def test_end_to_end_scenario(self, client):
        """POST alice, fetch her, reject the duplicate, 404 on unknown, list defaults."""
        created = client.post(BASE, json=create_payload("alice"))
        assert created.status_code == 200
        assert created.data == b""

        fetched = client.get(f"{BASE}1")
        assert fetched.status_code == 200
        body = fetched.get_json()
        assert body["loginName"] == "alice"
        assert body["email"] == "alice@example.com"
        assert body["status"] == "active"
        assert "password" not in body and "salt" not in body

        duplicate = client.post(BASE, json=create_payload("alice"))
        assert duplicate.status_code == 409
        assert duplicate.mimetype == "application/problem+json"
        assert "alice" in duplicate.get_json()["detail"]

        missing = client.get(f"{BASE}999")
        assert missing.status_code == 404
        assert missing.get_json()["code"] == "not_found"

        listing = client.get(BASE)
        assert listing.status_code == 200
        page = listing.get_json()
        assert (page["page"], page["perPage"], page["total"]) == (1, 20, 1)
        assert [u["loginName"] for u in page["users"]] == ["alice"]

    def test_invalid_body_is_400(self, client):
        resp = client.post(BASE, json=create_payload(email="nope"))
        assert resp.status_code == 400
        problem = resp.get_json()
        assert problem["code"] == "validation_error"
        assert "email" in problem["details"]["errors"]

    def test_blank_login_name_is_400(self, client):
        resp = client.post(BASE, json=create_payload(loginName="   "))
        assert resp.status_code == 400
        assert "loginName" in resp.get_json()["details"]["errors"]

    def test_email_without_dotted_domain_is_400(self, client):
        resp = client.post(BASE, json=create_payload("bob", email="bob@localhost"))
        assert resp.status_code == 400
        assert "email" in resp.get_json()["details"]["errors"]

    def test_non_json_body_is_400(self, client):
        resp = client.post(BASE, data="not json", content_type="text/plain")
        assert resp.status_code == 400

    def test_created_at_is_stamped(self, client, freeze_time):
        with freeze_time("2024-03-01T08:30:00"):
            assert client.post(BASE, json=create_payload("frozen")).status_code == 200
            body = client.get(f"{BASE}1").get_json()
        assert body["createdAt"].startswith("2024-03-01T08:30:00")
        assert body["updatedAt"] is None


class TestGetById:
    def test_non_numeric_id_is_400(self, client):
        resp = client.get(f"{BASE}abc")
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "bad_request"

    def test_out_of_range_id_is_400(self, client):
        assert client.get(f"{BASE}9223372036854775808").status_code == 400

    def test_request_id_is_echoed(self, client):
        UserFactory()
        resp = client.get(f"{BASE}1", headers=json_headers(request_id="req-123"))
        assert resp.headers["X-Request-ID"] == "req-123"


class TestSearch:
    def test_pagination_and_filters(self, client):
        UserFactory.create_batch(3, status="active")
        UserFactory(login_name="zed", status="inactive")

        page = client.get(build_url(BASE, page=2, perPage=2)).get_json()
        assert (page["page"], page["perPage"], page["total"]) == (2, 2, 4)
        assert len(page["users"]) == 2

        inactive = client.get(build_url(BASE, status="inactive")).get_json()
        assert [u["loginName"] for u in inactive["users"]] == ["zed"]
        assert (inactive["page"], inactive["perPage"]) == (1, 20)

    def test_malformed_query_is_400(self, client):
        assert client.get(build_url(BASE, page="abc")).status_code == 400
        assert client.get(build_url(BASE, status="banned")).status_code == 400

    def test_huge_page_is_400(self, client):
        resp = client.get(build_url(BASE, page=10**20))
        assert resp.status_code == 400
        assert "page" in resp.get_json()["details"]["errors"]

    def test_non_positive_paging_uses_defaults(self, client):
        UserFactory()

        resp = client.get(build_url(BASE, page=-1, perPage=-5))

        assert resp.status_code == 200
        page = resp.get_json()
        assert (page["page"], page["perPage"], page["total"]) == (1, 20, 1)


class TestMutations:
    def test_update_names(self, client):
        user = UserFactory(first_name="Old", last_name="Name")

        resp = client.put(
            f"{BASE}{user.id}",
            json={"firstName": "New", "middleName": "Q", "lastName": "Person"},
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert (body["firstName"], body["middleName"], body["lastName"]) == ("New", "Q", "Person")
        assert body["loginName"] == user.login_name
        assert body["updatedAt"] is not None

    def test_update_missing_is_404(self, client):
        resp = client.put(f"{BASE}77", json={"firstName": "A", "lastName": "B"})
        assert resp.status_code == 404

    def test_update_status(self, client):
        user = UserFactory(status="active")

        resp = client.patch(f"{BASE}{user.id}/status", json={"status": "inactive"})

        assert resp.status_code == 204
        assert client.get(f"{BASE}{user.id}").get_json()["status"] == "inactive"

    def test_update_status_rejects_unknown_value(self, client):
        user = UserFactory()
        resp = client.patch(f"{BASE}{user.id}/status", json={"status": "banned"})
        assert resp.status_code == 400

    def test_update_password(self, client, auth_service, ctx):
        user = UserFactory(login_name="pat")

        resp = client.put(f"{BASE}{user.id}/password", json={"password": "brand-new-pass"})

        assert resp.status_code == 204
        assert auth_service.verify_credentials(ctx, "pat", "brand-new-pass").id == user.id

    def test_update_password_missing_is_404(self, client):
        resp = client.put(f"{BASE}5/password", json={"password": "brand-new-pass"})
        assert resp.status_code == 404

    def test_forgot_password_is_accepted(self, client):
        resp = client.post(f"{BASE}forgot-password", json={"email": "someone@example.com"})
        assert resp.status_code == 202

    def test_forgot_password_requires_email(self, client):
        assert client.post(f"{BASE}forgot-password", json={}).status_code == 400


class TestShutdown:
    def test_requests_during_shutdown_are_503(self, app, client):
        app.extensions["shutdown_event"].set()

        resp = client.get(f"{BASE}1")

        assert resp.status_code == 503
        assert resp.get_json()["code"] == "service_unavailable"

    def test_request_running_when_shutdown_starts_completes(
        self, app, client, monkeypatch, user_service
    ):
        original = UserRepository.is_user_taken

        def taken_then_stop(repo, ctx, login_name):
            result = original(repo, ctx, login_name)
            app.extensions["shutdown_event"].set()
            return result

        monkeypatch.setattr(UserRepository, "is_user_taken", taken_then_stop)

        resp = client.post(BASE, json=create_payload("late"))

        assert resp.status_code == 200
        assert user_service.get_by_id(ServiceContext(), 1).login_name == "late"

    def test_abort_cancels_running_request(self, app, client, monkeypatch):
        original = UserRepository.is_user_taken

        def taken_then_abort(repo, ctx, login_name):
            result = original(repo, ctx, login_name)
            app.extensions["abort_event"].set()
            return result

        monkeypatch.setattr(UserRepository, "is_user_taken", taken_then_abort)

        resp = client.post(BASE, json=create_payload("cut"))

        assert resp.status_code == 503
        assert resp.get_json()["code"] == "service_unavailable"
