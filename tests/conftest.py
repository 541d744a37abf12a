import pytest

from api import create_app


@pytest.fixture
def app():
    """Fresh application with its own in-memory database."""
    app = create_app("testing")
    yield app
    app.extensions["storage"].drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    return app.extensions["storage"]


@pytest.fixture
def vault(app):
    return app.extensions["password_vault"]


@pytest.fixture
def issuer(app):
    return app.extensions["token_issuer"]


@pytest.fixture
def sessions(app):
    return app.extensions["session_store"]


@pytest.fixture
def auth_service(app):
    return app.extensions["auth_service"]


@pytest.fixture
def register(client):
    """Register a user over HTTP and return the response data."""
    def _register(username="alice", email="alice@x.com", full_name="Alice Liddell", password="pw123456"):
        resp = client.post(
            "/api/v1/users/register",
            json={"username": username, "email": email, "full_name": full_name, "password": password},
        )
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]

    return _register