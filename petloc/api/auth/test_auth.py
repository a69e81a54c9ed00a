# petloc/api/auth/test_auth.py
import pytest
from firebase_admin import auth as firebase_auth
from google.api_core import exceptions as gcp_exceptions

from petloc.conftest import seed_user


@pytest.fixture
def firebase_identity(monkeypatch):
    """ID Token 문자열 → 디코딩 결과 매핑으로 verify_id_token을 대체합니다."""
    identities = {}

    def fake_verify(id_token, *args, **kwargs):
        if id_token not in identities:
            raise firebase_auth.InvalidIdTokenError("invalid token")
        return identities[id_token]

    monkeypatch.setattr(firebase_auth, 'verify_id_token', fake_verify)
    return identities


def test_first_login_creates_user_profile(client, fake_db, firebase_identity):
    firebase_identity['tok-new'] = {'uid': 'u-new', 'email': 'new@petloc.test', 'name': 'Nova'}

    res = client.post('/api/auth/session', json={'id_token': 'tok-new'})

    assert res.status_code == 200
    body = res.get_json()
    assert body['is_new_user'] is True
    assert body['session']['role'] == 'user'
    assert body['access_token'] and body['refresh_token']
    stored = fake_db.collection('users').document('u-new').get().to_dict()
    assert stored['role'] == 'user'
    assert stored['email'] == 'new@petloc.test'


def test_existing_admin_profile_role_is_adopted(client, fake_db, firebase_identity):
    seed_user(fake_db, 'u-admin', role='admin')
    firebase_identity['tok-admin'] = {'uid': 'u-admin', 'email': 'u-admin@petloc.test', 'name': 'Chefe'}

    body = client.post('/api/auth/session', json={'id_token': 'tok-admin'}).get_json()

    assert body['is_new_user'] is False
    assert body['session']['role'] == 'admin'
    assert body['session']['is_admin'] is True


def test_unknown_role_value_resolves_to_user(client, fake_db, firebase_identity):
    seed_user(fake_db, 'u-weird', role='superuser')
    firebase_identity['tok'] = {'uid': 'u-weird', 'email': None, 'name': None}

    body = client.post('/api/auth/session', json={'id_token': 'tok'}).get_json()

    assert body['session']['role'] == 'user'


def test_profile_lookup_failure_never_grants_admin(client, fake_db, firebase_identity):
    seed_user(fake_db, 'u-admin', role='admin')
    fake_db.fail_on('users', gcp_exceptions.ServiceUnavailable("firestore down"))
    firebase_identity['tok'] = {'uid': 'u-admin', 'email': 'a@petloc.test', 'name': 'A'}

    res = client.post('/api/auth/session', json={'id_token': 'tok'})

    assert res.status_code == 200
    body = res.get_json()
    assert body['session']['role'] == 'user'
    assert body['user'] is None


def test_invalid_id_token_is_rejected(client, firebase_identity):
    res = client.post('/api/auth/session', json={'id_token': 'forged'})
    assert res.status_code == 401
    assert res.get_json()['error_code'] == 'INVALID_ID_TOKEN'


def test_register_validates_password_rules(client):
    res = client.post('/api/auth/register', json={
        'name': 'Ana', 'email': 'ana@petloc.test', 'password': '123456', 'confirm_password': '654321'
    })
    assert res.status_code == 400
    assert 'confirm_password' in res.get_json()['details']

    res = client.post('/api/auth/register', json={
        'name': 'Ana', 'email': 'ana@petloc.test', 'password': '123', 'confirm_password': '123'
    })
    assert res.status_code == 400
    assert 'password' in res.get_json()['details']


def test_register_creates_account_and_profile(client, fake_db, monkeypatch):
    class Record:
        uid = 'u-ana'
        email = 'ana@petloc.test'
        display_name = 'Ana'

    monkeypatch.setattr(firebase_auth, 'create_user', lambda **kwargs: Record())

    res = client.post('/api/auth/register', json={
        'name': ' Ana ', 'email': 'ana@petloc.test', 'password': '123456', 'confirm_password': '123456'
    })

    assert res.status_code == 201
    assert res.get_json()['user']['role'] == 'user'
    assert fake_db.collection('users').document('u-ana').get().to_dict()['display_name'] == 'Ana'


def test_register_with_email_in_use_conflicts(client, monkeypatch):
    def fake_create_user(**kwargs):
        raise firebase_auth.EmailAlreadyExistsError("EMAIL_EXISTS", None, None)

    monkeypatch.setattr(firebase_auth, 'create_user', fake_create_user)

    res = client.post('/api/auth/register', json={
        'name': 'Ana', 'email': 'ana@petloc.test', 'password': '123456', 'confirm_password': '123456'
    })

    assert res.status_code == 409
    assert res.get_json()['error_code'] == 'EMAIL_ALREADY_IN_USE'


def test_me_reflects_current_role(client, fake_db, make_headers):
    headers = make_headers('carol')
    assert client.get('/api/auth/me', headers=headers).get_json()['session']['role'] == 'user'

    # 역할은 매 요청마다 프로필에서 다시 읽습니다.
    fake_db.collection('users').document('carol').update({'role': 'admin'})
    assert client.get('/api/auth/me', headers=headers).get_json()['session']['role'] == 'admin'


def test_request_without_token_is_unauthorized(client):
    assert client.get('/api/auth/me').status_code == 401


def test_refresh_issues_new_access_token(client, make_refresh_token):
    refresh = make_refresh_token('alice')
    res = client.post('/api/auth/token/refresh', headers={'Authorization': f'Bearer {refresh}'})
    assert res.status_code == 200
    assert res.get_json()['access_token']


def test_logout_revokes_tokens(client, make_headers, make_refresh_token):
    headers = make_headers('alice')
    access = headers['Authorization'].split()[1]

    res = client.post('/api/auth/logout', json={'access_token': access, 'refresh_token': make_refresh_token('alice')})
    assert res.status_code == 200

    res = client.get('/api/auth/me', headers=headers)
    assert res.status_code == 401
    assert res.get_json()['error_code'] == 'TOKEN_REVOKED'
