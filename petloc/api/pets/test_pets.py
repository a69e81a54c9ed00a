# petloc/api/pets/test_pets.py
import json
from datetime import datetime, timezone

from google.api_core import exceptions as gcp_exceptions

PET = {'name': ' Rex ', 'description': 'Vira-lata caramelo', 'contact': '(11) 98765-4321'}


def _create(client, headers, **overrides):
    res = client.post('/api/pets/', json={**PET, **overrides}, headers=headers)
    assert res.status_code == 201
    return res.get_json()


def test_create_pet_trims_fields_and_sets_owner(client, user_headers):
    pet = _create(client, user_headers)
    assert pet['name'] == 'Rex'
    assert pet['owner_id'] == 'alice'
    assert pet['pet_id']


def test_create_pet_requires_fields(client, user_headers):
    res = client.post('/api/pets/', json={'name': 'Rex'}, headers=user_headers)
    assert res.status_code == 400
    details = res.get_json()['details']
    assert set(details) == {'description', 'contact'}


def test_list_returns_only_callers_pets(client, user_headers, other_headers):
    _create(client, user_headers, name='Rex')
    _create(client, user_headers, name='Mel')
    _create(client, other_headers, name='Thor')

    pets = client.get('/api/pets/', headers=user_headers).get_json()

    assert {p['name'] for p in pets} == {'Rex', 'Mel'}
    assert all(p['owner_id'] == 'alice' for p in pets)
    # 최신 등록순
    assert [p['name'] for p in pets] == ['Mel', 'Rex']


def test_non_owner_cannot_edit_or_delete(client, user_headers, other_headers):
    pet = _create(client, user_headers)

    assert client.patch(f"/api/pets/{pet['pet_id']}", json={'name': 'X'}, headers=other_headers).status_code == 403
    assert client.delete(f"/api/pets/{pet['pet_id']}", headers=other_headers).status_code == 403
    assert client.get(f"/api/pets/{pet['pet_id']}", headers=other_headers).status_code == 403


def test_owner_updates_partially(client, user_headers):
    pet = _create(client, user_headers)

    res = client.patch(f"/api/pets/{pet['pet_id']}", json={'contact': 'novo@email.com'}, headers=user_headers)

    assert res.status_code == 200
    body = res.get_json()
    assert body['contact'] == 'novo@email.com'
    assert body['name'] == 'Rex'


def test_empty_update_is_rejected(client, user_headers):
    pet = _create(client, user_headers)
    res = client.patch(f"/api/pets/{pet['pet_id']}", json={}, headers=user_headers)
    assert res.status_code == 400
    assert res.get_json()['error_code'] == 'EMPTY_UPDATE'


def test_admin_can_delete_any_pet(client, user_headers, admin_headers):
    pet = _create(client, user_headers)

    assert client.delete(f"/api/pets/{pet['pet_id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/pets/{pet['pet_id']}", headers=user_headers).status_code == 404


def test_backend_permission_error_suggests_rules(client, fake_db, user_headers):
    fake_db.fail_on('pets', gcp_exceptions.PermissionDenied("Missing or insufficient permissions."))

    res = client.get('/api/pets/', headers=user_headers)

    assert res.status_code == 403
    body = res.get_json()
    assert body['error_code'] == 'PERMISSION_DENIED'
    assert 'regras de segurança' in body['message']


def test_transient_backend_error_is_reported(client, fake_db, user_headers):
    fake_db.fail_on('pets', gcp_exceptions.ServiceUnavailable("unavailable"))

    res = client.post('/api/pets/', json=PET, headers=user_headers)

    assert res.status_code == 503
    assert res.get_json()['error_code'] == 'BACKEND_UNAVAILABLE'


def test_stream_sends_initial_snapshot(client, user_headers):
    _create(client, user_headers, name='Rex')

    res = client.get('/api/pets/stream', headers=user_headers)
    assert res.mimetype == 'text/event-stream'

    first_frame = next(iter(res.response))
    res.close()
    text = first_frame.decode() if isinstance(first_frame, bytes) else first_frame
    assert text.startswith('event: snapshot')
    assert '"Rex"' in text


def test_stream_items_match_list_for_legacy_document(client, fake_db, user_headers):
    fake_db.collection('pets').document('old').set({
        'owner_id': 'alice', 'name': 'Bidu', 'image_base64': '',
        'created_at': datetime(2023, 1, 10, tzinfo=timezone.utc),
    })
    listed = client.get('/api/pets/', headers=user_headers).get_json()

    res = client.get('/api/pets/stream', headers=user_headers)
    first_frame = next(iter(res.response))
    res.close()
    text = first_frame.decode() if isinstance(first_frame, bytes) else first_frame
    data_line = next(line for line in text.splitlines() if line.startswith('data: '))

    streamed = json.loads(data_line[len('data: '):])
    assert streamed == listed
    assert streamed[0]['image_base64'] is None
    assert streamed[0]['contact'] == ''
