"""Flask test-client tests for the controller and pilot endpoints."""

import pytest

from usaa.errors import StorageError


def _online(client, cid='123', callsign='UAL1', kind='controllers', **attrs):
    return client.post(f'/{kind}/online', json={'cid': cid, 'callsign': callsign, **attrs})


class TestControllerEndpoints:

    def test_set_online_envelope(self, client):
        resp = _online(client, cid=123, callsign='ual1', frequency='118.300')

        assert resp.status_code == 200
        body = resp.get_json()
        assert body['success'] is True
        assert body['message'] == 'Controller set as online'
        assert body['data']['cid'] == '123'
        assert body['data']['callsign'] == 'UAL1'
        assert body['data']['frequency'] == '118.300'
        assert 'timestamp' in body

    def test_get_by_cid_and_callsign(self, client):
        _online(client)

        by_cid = client.get('/controllers/123').get_json()
        by_callsign = client.get('/controllers/callsign/ual1').get_json()
        legacy = client.get('/callsign/UAL1').get_json()

        assert by_cid['data'] == by_callsign['data'] == legacy['data']

    def test_list_online_with_count(self, client):
        _online(client, cid='1', callsign='AAA1')
        _online(client, cid='2', callsign='BBB2')
        client.post('/controllers/offline', json={'cid': '1'})

        body = client.get('/controllers').get_json()

        assert body['count'] == 1
        assert [c['cid'] for c in body['data']] == ['2']

    def test_conflict_is_409(self, client):
        _online(client, cid='123')
        resp = _online(client, cid='456')

        assert resp.status_code == 409
        assert resp.get_json() == {
            'success': False,
            'error': 'Callsign already in use by another controller',
            'timestamp': resp.get_json()['timestamp'],
        }
        assert client.get('/controllers/456').status_code == 404

    def test_offline_then_delete(self, client):
        _online(client)

        resp = client.post('/controllers/offline', json={'cid': '123'})
        assert resp.status_code == 200
        assert resp.get_json()['data']['status'] == 'offline'
        assert client.get('/callsign/UAL1').status_code == 404

        resp = client.delete('/controllers/123')
        assert resp.status_code == 200
        assert resp.get_json()['message'] == 'Controller removed from tracking'
        assert 'data' not in resp.get_json()

        resp = client.get('/controllers/123')
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'Controller not found'

    @pytest.mark.parametrize('path', ['/controllers/12ab', '/controllers/0'])
    def test_bad_cid_in_path(self, client, path):
        resp = client.get(path)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid CID format. CID must be numeric.'

    def test_cid_with_trailing_newline_is_400(self, client):
        resp = _online(client, cid='123\n')

        assert resp.status_code == 400
        assert client.get('/controllers').get_json()['count'] == 0

    def test_dotted_callsign(self, client):
        assert _online(client, callsign='n1.a').status_code == 200

        resp = client.get('/controllers/callsign/N1.A')
        assert resp.status_code == 200
        assert resp.get_json()['data']['callsign'] == 'N1.A'

    def test_bad_callsign_in_path(self, client):
        resp = client.get('/controllers/callsign/X')
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid callsign format'

    @pytest.mark.parametrize('payload', [{'cid': '123'}, {'callsign': 'UAL1'}, {'cid': '', 'callsign': 'UAL1'}])
    def test_missing_fields(self, client, payload):
        resp = client.post('/controllers/online', json=payload)
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Missing required fields: cid and callsign'

    def test_non_json_body(self, client):
        resp = client.post('/controllers/online', data='cid=1', content_type='text/plain')
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'JSON body required'

    def test_offline_requires_cid(self, client):
        resp = client.post('/controllers/offline', json={})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid or missing CID'

    def test_offline_unknown_cid(self, client):
        resp = client.post('/controllers/offline', json={'cid': 999})
        assert resp.status_code == 404

    def test_delete_unknown_cid(self, client):
        assert client.delete('/controllers/999').status_code == 404


class TestPilotEndpoints:

    def test_pilot_lifecycle(self, client):
        resp = _online(client, kind='pilots', cid='900', callsign='dal900',
                       aircraft='a321', departure='katl', arrival='kmco')
        assert resp.status_code == 200
        assert resp.get_json()['message'] == 'Pilot set as online'

        data = client.get('/pilots/callsign/DAL900').get_json()['data']
        assert data['aircraft'] == 'A321'
        assert data['departure'] == 'KATL'

        client.post('/pilots/offline', json={'cid': '900'})
        assert client.get('/pilots').get_json()['count'] == 0
        assert client.get('/pilots/900').get_json()['data']['arrival'] == 'KMCO'

    def test_pilot_requires_aircraft(self, client):
        resp = _online(client, kind='pilots', cid='900', callsign='DAL900')
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Missing required fields: aircraft'

    def test_pilot_and_controller_callsigns_do_not_collide(self, client):
        _online(client, cid='1', callsign='UAL1')
        resp = _online(client, kind='pilots', cid='2', callsign='UAL1', aircraft='B738')
        assert resp.status_code == 200

        assert client.get('/callsign/UAL1').get_json()['data']['cid'] == '1'
        assert client.get('/pilots/callsign/UAL1').get_json()['data']['cid'] == '2'


class TestStorageFailure:

    def test_storage_error_is_500_with_details(self, client, memory_store, monkeypatch):
        def broken_get(key):
            raise StorageError('Storage read failed', details='database is locked')

        monkeypatch.setattr(memory_store, 'get', broken_get)

        resp = client.get('/controllers/123')

        assert resp.status_code == 500
        body = resp.get_json()
        assert body['success'] is False
        assert body['error'] == 'Storage read failed'
        assert body['details'] == 'database is locked'
