import pytest

from repairdesk import models
from repairdesk.database import engine
from sqlmodel import Session, select


def _repair_body(user_id, **overrides):
    body = {'userId': user_id, 'device': 'Phone X', 'issue': 'Cracked screen', 'scheduled': '2026-11-01T10:00:00Z'}
    body.update(overrides)
    return body


def _count_requests():
    with Session(engine) as session:
        return len(session.exec(select(models.SupportRequest)).all())


def test_customer_creates_pending_request(client, customer):
    headers, user = customer
    r = client.post('/api/repair', json=_repair_body(user['id']), headers=headers)
    assert r.status_code == 201
    body = r.json()
    assert body['userId'] == user['id']
    assert body['device'] == 'Phone X'
    assert body['status'] == 'Pending'
    assert body['adminMessage'] is None
    assert 'createdAt' in body


@pytest.mark.parametrize('missing', ['userId', 'device', 'issue', 'scheduled'])
def test_missing_field_is_rejected_and_nothing_stored(client, customer, missing):
    headers, user = customer
    body = _repair_body(user['id'])
    del body[missing]
    before = _count_requests()
    r = client.post('/api/repair', json=body, headers=headers)
    assert r.status_code == 400
    assert r.json() == {'error': 'All fields are required'}
    assert _count_requests() == before


def test_empty_string_counts_as_missing(client, customer):
    headers, user = customer
    r = client.post('/api/repair', json=_repair_body(user['id'], device=''), headers=headers)
    assert r.status_code == 400


def test_unparsable_schedule_is_bad_request(client, customer):
    headers, user = customer
    r = client.post('/api/repair', json=_repair_body(user['id'], scheduled='next tuesday'), headers=headers)
    assert r.status_code == 400


def test_unknown_user_is_bad_request(client, customer):
    headers, _ = customer
    r = client.post('/api/repair', json=_repair_body(999999), headers=headers)
    assert r.status_code == 400
    assert 'user not found' in r.json()['error']


def test_my_requests_returns_only_own_newest_first(client, signup):
    token_a, user_a = signup()
    token_b, user_b = signup()
    headers_a = {'Authorization': f'Bearer {token_a}'}
    headers_b = {'Authorization': f'Bearer {token_b}'}
    first = client.post('/api/repair', json=_repair_body(user_a['id'], device='first'), headers=headers_a).json()
    second = client.post('/api/repair', json=_repair_body(user_a['id'], device='second'), headers=headers_a).json()
    client.post('/api/repair', json=_repair_body(user_b['id'], device='other'), headers=headers_b)

    r = client.get('/api/my-requests', headers=headers_a)
    assert r.status_code == 200
    assert [x['id'] for x in r.json()] == [second['id'], first['id']]


def test_admin_lists_all_requests_with_user(client, customer, admin):
    c_headers, user = customer
    a_headers, _ = admin
    created = client.post('/api/repair', json=_repair_body(user['id']), headers=c_headers).json()
    r = client.get('/api/repair', headers=a_headers)
    assert r.status_code == 200
    row = next(x for x in r.json() if x['id'] == created['id'])
    assert row['user']['email'] == user['email']
    assert 'password' not in row['user']


def test_reply_sets_message_and_approves(client, customer, admin):
    c_headers, user = customer
    a_headers, _ = admin
    created = client.post('/api/repair', json=_repair_body(user['id']), headers=c_headers).json()
    r = client.put(f"/api/repair/{created['id']}/reply", json={'adminMessage': 'Bring it Monday'}, headers=a_headers)
    assert r.status_code == 200
    assert r.json()['adminMessage'] == 'Bring it Monday'
    assert r.json()['status'] == 'Approved'

    own = client.get('/api/my-requests', headers=c_headers).json()
    assert own[0]['status'] == 'Approved'


def test_reply_to_approved_request_stays_approved(client, customer, admin):
    c_headers, user = customer
    a_headers, _ = admin
    created = client.post('/api/repair', json=_repair_body(user['id']), headers=c_headers).json()
    client.put(f"/api/repair/{created['id']}/reply", json={'adminMessage': 'first'}, headers=a_headers)
    r = client.put(f"/api/repair/{created['id']}/reply", json={'adminMessage': 'second'}, headers=a_headers)
    assert r.json()['status'] == 'Approved'
    assert r.json()['adminMessage'] == 'second'


def test_reply_to_unknown_request_is_not_found(client, admin):
    headers, _ = admin
    r = client.put('/api/repair/999999/reply', json={'adminMessage': 'x'}, headers=headers)
    assert r.status_code == 404
    assert r.json() == {'message': 'Support request not found'}
