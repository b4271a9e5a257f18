"""Integration tests for admin baker management."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.core import mail

from modules.accounts.constants import Role
from modules.accounts.models import Account

pytestmark = pytest.mark.integration

BAKERS_URL = "/api/v1/users/bakers/"

User = get_user_model()


def _details(**overrides) -> dict:
    data = {
        "email": "Grace@Example.com",
        "first_name": "Grace",
        "last_name": "Hopper",
        "phone_number": "0412 345 678",
    }
    data.update(overrides)
    return data


def _detail_url(account) -> str:
    return f"{BAKERS_URL}{account.id}/"


@pytest.fixture()
def baker_account(baker_user):
    account = baker_user.account
    account.phone_number = "0400 000 001"
    account.save()
    baker_user.first_name = "Amelia"
    baker_user.last_name = "Baker"
    baker_user.save()
    return account


class TestCreateBaker:
    def test_admin_creates_baker_and_welcome_email_is_sent(
        self, admin_client, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.post(BAKERS_URL, _details(), format="json")

        assert response.status_code == 201
        baker = response.json()["baker"]
        assert baker["email"] == "grace@example.com"
        assert baker["full_name"] == "Grace Hopper"
        assert baker["baker_id"] == "B001"
        assert baker["is_active"] is True
        assert baker["is_first_login"] is True
        assert response.json()["email_queued"] is True

        [message] = mail.outbox
        assert message.to == ["grace@example.com"]
        assert "B001" in message.body
        assert "Temporary Password" in message.body

    def test_emailed_password_matches_the_stored_one(
        self, admin_client, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            admin_client.post(BAKERS_URL, _details(), format="json")
        user = User.objects.get(email="grace@example.com")
        [message] = mail.outbox
        password = next(
            line.split(":", 1)[1].strip()
            for line in message.body.splitlines()
            if "Temporary Password:" in line
        )

        assert user.check_password(password)

    def test_duplicate_email_is_rejected(self, admin_client, baker_account):
        response = admin_client.post(
            BAKERS_URL, _details(email="AMELIA@example.com"), format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "duplicate_account"
        assert response.json()["field"] == "email"

    def test_duplicate_phone_is_rejected(self, admin_client, baker_account):
        response = admin_client.post(
            BAKERS_URL, _details(phone_number="0400 000 001"), format="json"
        )

        assert response.status_code == 400
        assert response.json()["field"] == "phone_number"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"first_name": "G"},
            {"last_name": "H" * 51},
            {"phone_number": "12345"},
            {"email": "not-an-email"},
            {"phone_number": ""},
        ],
    )
    def test_invalid_details_are_rejected(self, admin_client, overrides):
        response = admin_client.post(
            BAKERS_URL, _details(**overrides), format="json"
        )
        assert response.status_code == 400
        assert not Account.objects.filter(role=Role.BAKER).exists()

    def test_bakers_cannot_manage_bakers(self, baker_client):
        assert baker_client.get(BAKERS_URL).status_code == 403
        response = baker_client.post(BAKERS_URL, _details(), format="json")
        assert response.status_code == 403


class TestListAndUpdate:
    def test_list_is_newest_first(self, admin_client, baker_user, other_baker_user):
        response = admin_client.get(BAKERS_URL)

        assert response.status_code == 200
        ids = [row["baker_id"] for row in response.json()["results"]]
        assert ids == ["B002", "B001"]

    def test_admin_updates_baker(self, admin_client, baker_account):
        response = admin_client.put(
            _detail_url(baker_account),
            _details(email="amelia.new@example.com", first_name="Amy"),
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["email"] == "amelia.new@example.com"
        assert response.json()["first_name"] == "Amy"
        assert response.json()["baker_id"] == "B001"

    def test_update_may_keep_own_email_and_phone(self, admin_client, baker_account):
        response = admin_client.put(
            _detail_url(baker_account),
            _details(email="amelia@example.com", phone_number="0400 000 001"),
            format="json",
        )
        assert response.status_code == 200

    def test_update_rejects_another_users_phone(
        self, admin_client, baker_account, other_baker_user
    ):
        other = other_baker_user.account
        other.phone_number = "0499 999 999"
        other.save()

        response = admin_client.put(
            _detail_url(baker_account),
            _details(email="amelia@example.com", phone_number="0499 999 999"),
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["field"] == "phone_number"

    def test_unknown_baker_is_404(self, admin_client):
        response = admin_client.put(
            f"{BAKERS_URL}not-a-uuid/", _details(), format="json"
        )
        assert response.status_code == 404

    def test_toggle_status_flips_active_flag(self, admin_client, baker_account):
        url = f"{_detail_url(baker_account)}toggle-status/"

        first = admin_client.put(url)
        second = admin_client.put(url)

        assert first.json()["baker"]["is_active"] is False
        assert second.json()["baker"]["is_active"] is True

    def test_deactivated_baker_cannot_obtain_token(
        self, admin_client, api_client, baker_account
    ):
        admin_client.put(f"{_detail_url(baker_account)}toggle-status/")

        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "amelia", "password": "testpass123"},
            format="json",
        )

        assert response.status_code == 401

    def test_reset_password_emails_temporary_password(
        self, admin_client, baker_account, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = admin_client.post(
                f"{_detail_url(baker_account)}reset-password/"
            )

        assert response.status_code == 200
        baker_account.refresh_from_db()
        assert baker_account.is_first_login is True
        assert not baker_account.user.check_password("testpass123")
        [message] = mail.outbox
        assert message.to == ["amelia@example.com"]


class TestSearchAndStats:
    def test_search_matches_name_phone_and_baker_id(
        self, admin_client, baker_account, other_baker_user
    ):
        by_name = admin_client.get(f"{BAKERS_URL}search/", {"q": "amel"}).json()
        by_phone = admin_client.get(f"{BAKERS_URL}search/", {"q": "000 001"}).json()
        by_id = admin_client.get(f"{BAKERS_URL}search/", {"q": "b002"}).json()

        assert by_name["count"] == 1
        assert by_name["query"] == "amel"
        assert by_name["results"][0]["baker_id"] == "B001"
        assert [row["baker_id"] for row in by_phone["results"]] == ["B001"]
        assert [row["baker_id"] for row in by_id["results"]] == ["B002"]

    def test_short_query_is_rejected(self, admin_client):
        response = admin_client.get(f"{BAKERS_URL}search/", {"q": "a"})

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_query"

    def test_stats_count_bakers_only(
        self, admin_client, admin_user, baker_account, other_baker_user
    ):
        other_baker_user.is_active = False
        other_baker_user.save()
        baker_account.is_first_login = True
        baker_account.save()

        response = admin_client.get("/api/v1/users/stats/")

        assert response.json() == {
            "total_bakers": 2,
            "active_bakers": 1,
            "inactive_bakers": 1,
            "first_login_pending": 1,
        }
