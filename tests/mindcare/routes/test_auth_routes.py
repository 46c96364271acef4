import jwt
import pytest
from fastapi.testclient import TestClient

from mindcare.auth import jwt_handler
from mindcare.core import config
from mindcare.database import get_db
from mindcare.main import app


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_create_access_token_round_trips_subject_and_role() -> None:
    token = jwt_handler.create_access_token(subject='patient@example.com', role='patient')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'patient@example.com'
    assert payload['role'] == 'patient'
    assert payload['exp'] > payload['iat']


def test_decode_access_token_rejects_expired_token() -> None:
    token = jwt_handler.create_access_token(subject='patient@example.com', expires_minutes=-1)

    with pytest.raises(jwt.ExpiredSignatureError):
        jwt_handler.decode_access_token(token)


def test_decode_access_token_requires_subject() -> None:
    token = jwt.encode({'exp': 4102444800}, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    with pytest.raises(jwt.MissingRequiredClaimError):
        jwt_handler.decode_access_token(token)


def test_me_returns_current_user(client, patient) -> None:
    token = jwt_handler.create_access_token(subject=patient.email)

    response = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 200
    assert response.json() == {
        'id': patient.id,
        'email': 'patient@example.com',
        'firstName': 'Ivan',
        'lastName': 'Petrenko',
        'role': 'patient',
    }


def test_me_rejects_expired_token(client, patient) -> None:
    token = jwt_handler.create_access_token(subject=patient.email, expires_minutes=-1)

    response = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert response.json() == {'detail': 'Invalid token'}


def test_validate_runtime_config_rejects_default_secret_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()
