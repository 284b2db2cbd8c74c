import pytest

from printhub.db.session import configure_engine, get_session
from printhub.db.init_db import init_db
from printhub.db.enums import UserRole
from printhub.services.audit_log_service import AuditLogService
from printhub.services.user_service import UserService

ADMIN_KEY = "test-admin-key"


@pytest.fixture
def db():
    '''Fresh in-memory database per test'''
    configure_engine("sqlite:///:memory:")
    init_db()
    session = get_session()
    yield session
    session.close()
    configure_engine(None)


@pytest.fixture
def audit_log_service(db):
    return AuditLogService(db)


@pytest.fixture
def student(db):
    return UserService(db).create_user(name="Asha", email="asha@campus.edu", password="secret123")


@pytest.fixture
def other_student(db):
    return UserService(db).create_user(name="Ravi", email="ravi@campus.edu", password="secret123")


@pytest.fixture
def admin(db):
    return UserService(db).create_user(
        name="Desk", email="desk@campus.edu", password="secret123", role=UserRole.admin,
    )


# ======================================================
# 🌐 HTTP
# ======================================================

@pytest.fixture
def app(tmp_path):
    from printhub.app_factory import create_app

    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "DATABASE_URL": f"sqlite:///{tmp_path / 'printhub-test.db'}",
        "SESSION_FILE_DIR": str(tmp_path / "sessions"),
        "MAIL_ENABLED": False,
        "ADMIN_KEY": ADMIN_KEY,
        "VERIFY_ORDER_TOTAL": False,
    })
    init_db()
    yield app
    configure_engine(None)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def student_client(app):
    client = app.test_client()
    response = client.post("/api/auth/register", json={
        "name": "Asha", "email": "asha@campus.edu", "password": "secret123",
    })
    assert response.status_code == 201
    return client


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    response = client.post("/api/auth/admin-register", json={
        "name": "Desk", "email": "desk@campus.edu", "password": "admin-pass-1", "adminKey": ADMIN_KEY,
    })
    assert response.status_code == 201
    return client
