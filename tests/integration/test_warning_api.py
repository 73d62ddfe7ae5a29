"""
Integration tests for the warnings API
"""

import uuid

from utils.validators import SINGLE_TARGET_MESSAGE
from tests.factories import DriverFactory, StaffFactory, WarningFactory


class TestWarningAPI:

    def test_requires_token(self, client):
        response = client.get('/warnings')

        assert response.status_code == 401
        assert 'error' in response.get_json()

    def test_rejects_bad_token(self, client):
        response = client.get('/warnings', headers={'Authorization': 'Bearer not-a-token'})

        assert response.status_code == 401

    def test_three_warnings_auto_fire_driver(self, client, auth_headers, driver):
        messages = []
        for n in range(3):
            response = client.post('/warnings', json={'driverId': driver.id, 'reason': f'Strike {n + 1}'},
                                   headers=auth_headers)
            assert response.status_code == 201
            messages.append(response.get_json())

        assert [body['autoFired'] for body in messages] == [False, False, True]
        assert messages[2]['message'] == (
            "Warning issued successfully. Driver has been automatically fired due to 3 warnings."
        )
        assert messages[0]['data']['createdBy'] == 'test-admin'

        driver_response = client.get(f'/drivers/{driver.id}', headers=auth_headers)
        data = driver_response.get_json()['data']
        assert data['status'] == 'TERMINATED'
        assert data['blacklisted'] is True
        assert data['warningCount'] == 3

    def test_staff_warning(self, client, auth_headers, staff_member):
        response = client.post('/warnings', json={'staffId': staff_member.id, 'reason': 'Rude', 'priority': 'LOW'},
                               headers=auth_headers)

        assert response.status_code == 201
        body = response.get_json()
        assert body['data']['staff']['id'] == staff_member.id
        assert body['data']['priority'] == 'LOW'

    def test_both_targets_returns_400(self, client, auth_headers):
        response = client.post('/warnings', json={'driverId': 'd1', 'staffId': 's1', 'reason': 'x'},
                               headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json() == {'error': SINGLE_TARGET_MESSAGE}

    def test_unknown_driver_returns_404(self, client, auth_headers):
        response = client.post('/warnings', json={'driverId': str(uuid.uuid4()), 'reason': 'Late'},
                               headers=auth_headers)

        assert response.status_code == 404
        assert response.get_json() == {'error': "Driver not found"}

    def test_invalid_json_body(self, client, auth_headers):
        response = client.post('/warnings', data='{not json', content_type='application/json',
                               headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json() == {'error': "Invalid JSON body"}

    def test_list_unpaginated(self, client, auth_headers, driver):
        WarningFactory(driver=driver)
        WarningFactory(driver=driver)

        response = client.get('/warnings', headers=auth_headers)

        body = response.get_json()
        assert response.status_code == 200
        assert len(body['data']) == 2
        assert 'pagination' not in body

    def test_list_paginated(self, client, auth_headers, driver):
        for _ in range(25):
            WarningFactory(driver=driver)

        response = client.get(f'/warnings?driverId={driver.id}&page=3&limit=10', headers=auth_headers)

        body = response.get_json()
        assert len(body['data']) == 5
        assert body['pagination']['totalPages'] == 3
        assert body['pagination']['hasNext'] is False
        assert body['pagination']['hasPrev'] is True

    def test_list_rejects_bad_filter(self, client, auth_headers):
        response = client.get('/warnings?driverId=abc', headers=auth_headers)

        assert response.status_code == 400

    def test_list_rejects_bad_limit(self, client, auth_headers):
        response = client.get('/warnings?limit=500', headers=auth_headers)

        assert response.status_code == 400

    def test_list_rejects_page_past_offset_range(self, client, auth_headers):
        response = client.get('/warnings?page=99999999999999999999&limit=10', headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()['error'] == "page is out of range"

    def test_get_warning(self, client, auth_headers, franchise):
        staff = StaffFactory(franchise=franchise)
        warning = WarningFactory(driver=None, staff=staff)

        response = client.get(f'/warnings/{warning.id}', headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()['data']['staff']['name'] == staff.name

    def test_delete_warning(self, client, auth_headers, driver):
        warning = WarningFactory(driver=driver)

        response = client.delete(f'/warnings/{warning.id}', headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json() == {'message': "Warning deleted successfully"}
        assert client.get(f'/warnings/{warning.id}', headers=auth_headers).status_code == 404

    def test_delete_unknown_warning(self, client, auth_headers):
        response = client.delete(f'/warnings/{uuid.uuid4()}', headers=auth_headers)

        assert response.status_code == 404
        assert response.get_json() == {'error': "Warning not found"}

    def test_request_id_echoed(self, client, auth_headers):
        response = client.get('/warnings', headers={**auth_headers, 'X-Request-ID': 'req-123'})

        assert response.headers['X-Request-ID'] == 'req-123'


def test_health_is_public(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_unknown_route_returns_json(client):
    response = client.get('/nope')

    assert response.status_code == 404
    assert 'error' in response.get_json()


def test_staff_lookup(client, auth_headers, staff_member):
    response = client.get(f'/staff/{staff_member.id}', headers=auth_headers)

    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'ACTIVE'


def test_driver_lookup_unknown(client, auth_headers):
    response = client.get(f'/drivers/{uuid.uuid4()}', headers=auth_headers)

    assert response.status_code == 404
    assert response.get_json() == {'error': "Driver not found"}


def test_escalated_driver_keeps_counting(client, auth_headers, franchise):
    driver = DriverFactory(franchise=franchise, warning_count=3, blacklisted=True)

    response = client.post('/warnings', json={'driverId': driver.id, 'reason': 'Again'}, headers=auth_headers)

    assert response.get_json()['autoFired'] is False
    assert client.get(f'/drivers/{driver.id}', headers=auth_headers).get_json()['data']['warningCount'] == 4
