import pytest

from printhub.db.enums import UserRole
from printhub.errors import AuthenticationError, ValidationError
from printhub.services.user_service import UserService


def test_create_user_hashes_password(db):
    user = UserService(db).create_user(name=" Asha ", email="Asha@Campus.edu", password="secret123")

    assert user.name == "Asha"
    assert user.email == "asha@campus.edu"
    assert user.role == UserRole.student
    assert user.password_hash != "secret123"
    assert user.password_hash.startswith("$2")


@pytest.mark.parametrize("kwargs, field", [
    ({"name": "", "email": "a@b.c", "password": "secret123"}, "name"),
    ({"name": "A", "email": "not-an-email", "password": "secret123"}, "email"),
    ({"name": "A", "email": "a@b.c", "password": "123"}, "password"),
    ({"name": "A", "email": "a@b.c", "password": None}, "password"),
])
def test_create_user_validation(db, kwargs, field):
    with pytest.raises(ValidationError) as exc:
        UserService(db).create_user(**kwargs)
    assert exc.value.field == field


def test_duplicate_email_rejected(db, student):
    with pytest.raises(ValidationError) as exc:
        UserService(db).create_user(name="Other", email="ASHA@campus.edu", password="secret123")
    assert exc.value.field == "email"


def test_authenticate(db, student):
    user = UserService(db).authenticate(email="asha@campus.edu", password="secret123")

    assert user.id == student.id
    assert user.last_login is not None


@pytest.mark.parametrize("email, password", [
    ("asha@campus.edu", "wrong-password"),
    ("nobody@campus.edu", "secret123"),
    ("asha@campus.edu", ""),
])
def test_authenticate_rejects_bad_credentials(db, student, email, password):
    with pytest.raises(AuthenticationError):
        UserService(db).authenticate(email=email, password=password)
