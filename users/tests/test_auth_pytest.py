import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_signin_and_profile():
    User = get_user_model()
    user = User.objects.create_user(
        username="jdoe",
        email="JDoe@Example.com ",
        password="StrongPass123!",
    )
    assert user.email == "jdoe@example.com"
    client = APIClient()

    resp = client.post(
        "/api/v1/auth/signin/",
        {"username": "jdoe", "password": "StrongPass123!"},
        format="json",
    )
    assert resp.status_code == 200
    access = resp.data["access"]

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    profile = client.get("/api/v1/account/profile/")
    assert profile.status_code == 200
    assert profile.data["email"] == "jdoe@example.com"


@pytest.mark.django_db
def test_signin_rejects_bad_password():
    get_user_model().objects.create_user(username="jdoe", email="jdoe@example.com", password="StrongPass123!")
    resp = APIClient().post("/api/v1/auth/signin/", {"username": "jdoe", "password": "nope"}, format="json")
    assert resp.status_code == 401


@pytest.mark.django_db
def test_profile_requires_authentication():
    assert APIClient().get("/api/v1/account/profile/").status_code == 401
