import pytest

from recomp import create_app
from recomp.extensions import db
from recomp.models import User
from recomp.routes import register_blueprints
from recomp.helpers.account import hash_password
from recomp.helpers.leaderboard_cache import invalidate_leaderboard_cache
from recomp.helpers.scans import create_scan, parse_scan_payload

PASSWORD = "secret123"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "ENVIRONMENT": "test",
            "SECRET_KEY": "test-secret",
            "SESSION_COOKIE_SECURE": False,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'recomp-test.db'}",
            "UPLOAD_FOLDER": str(tmp_path / "uploads"),
            "ADMIN_USERNAMES": "admin",
            "APP_URL": "http://testserver",
            "COMPETITION_START_DATE": "2025-08-04T00:00:00",
            "COMPETITION_END_DATE": "2025-11-26T23:59:59",
        }
    )
    register_blueprints(app)

    with app.app_context():
        db.create_all()
        invalidate_leaderboard_cache()
        yield app
        db.session.remove()
        db.drop_all()

    invalidate_leaderboard_cache()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username="alice", gender="male", password=PASSWORD, **fields):
        fields.setdefault("email", f"{username}@example.com")
        fields.setdefault("is_active", True)
        fields.setdefault("is_email_verified", True)
        user = User(
            username=username,
            gender=gender,
            password_hash=hash_password(password),
            **fields,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_scan(app):
    """Goes through the same write path as the API (baseline + recalculation)."""
    def _make(user, scan_date, body_fat_percent, lean_mass, total_weight=180.0, **fields):
        payload = {
            "scan_date": scan_date,
            "body_fat_percent": body_fat_percent,
            "lean_mass": lean_mass,
            "total_weight": total_weight,
            **fields,
        }
        scan, _ = create_scan(user.id, parse_scan_payload(payload))
        return scan
    return _make


@pytest.fixture
def login(client):
    def _login(username, password=PASSWORD):
        resp = client.post("/api/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()
    return _login
