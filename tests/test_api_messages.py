"""
Tests for the messaging API endpoints.

- POST /api/messages/send with and without a reward
- GET /api/messages/rewards
- POST /api/sms/send
- Business context enforcement
"""
import json
import pytest
from unittest.mock import patch

import requests

from zawadii.extensions import db
from zawadii.models import RewardCode, CustomerReward


class TestBusinessContext:
    """Requests without a valid business are refused."""

    def test_missing_business_header(self, client):
        response = client.post('/api/messages/send', json={'phone': '+255700000001', 'message': 'Hi'})
        assert response.status_code == 401
        assert response.get_json()['error']['code'] == 'AUTH_REQUIRED'

    def test_unknown_business(self, client, app):
        response = client.get('/api/rewards', headers={'X-Business-ID': '999'})
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'BUSINESS_NOT_FOUND'

    def test_inactive_business(self, client, sample_business, auth_headers):
        sample_business.is_active = False
        db.session.commit()

        response = client.get('/api/rewards', headers=auth_headers)
        assert response.status_code == 403

    def test_business_id_query_param(self, client, sample_business):
        response = client.get(f'/api/rewards?business_id={sample_business.id}')
        assert response.status_code == 200


class TestSendMessage:
    """Tests for POST /api/messages/send."""

    @patch('zawadii.services.sms_service.requests.post')
    def test_send_with_reward(self, mock_post, client, auth_headers, sample_customer, sample_codes, beem_response):
        mock_post.return_value = beem_response(valid=1, request_id=777)
        code_id = sample_codes[0].id

        response = client.post('/api/messages/send', headers=auth_headers, data=json.dumps({
            'phone': '+255700000001',
            'message': 'Thanks for coming!',
            'reward_code_id': code_id,
            'reward_title': 'Free Coffee',
        }))

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['request_id'] == '777'
        assert data['reward_code'] == 'COF1018001'
        assert data['message'] == 'SMS sent successfully'

        assert RewardCode.query.get(code_id).status == 'bought'
        claim = CustomerReward.query.filter_by(reward_code_id=code_id).one()
        assert claim.status == 'bought'
        assert claim.customer_id == sample_customer.id

        body = mock_post.call_args.kwargs['json']['message']
        assert body == (
            'Thanks for coming! - Mama Lishe Cafe\n\n'
            'Attached reward: Free Coffee, reward code: COF1018001'
        )

    @patch('zawadii.services.sms_service.requests.post')
    def test_send_without_reward(self, mock_post, client, auth_headers, beem_response):
        mock_post.return_value = beem_response(valid=1)

        response = client.post('/api/messages/send', headers=auth_headers, data=json.dumps({
            'phone': '+255700000009',
            'name': 'Walk In',
            'message': 'Karibu tena',
        }))

        assert response.status_code == 200
        assert response.get_json()['reward_code'] is None
        assert CustomerReward.query.count() == 0

    @patch('zawadii.services.sms_service.requests.post')
    def test_delivery_failure_rolls_back(
        self, mock_post, client, auth_headers, sample_customer, sample_codes, beem_response
    ):
        mock_post.return_value = beem_response(
            status_code=401, json_data={'code': 120, 'message': 'Invalid api_key or secret_key'}
        )
        code_id = sample_codes[0].id

        response = client.post('/api/messages/send', headers=auth_headers, data=json.dumps({
            'phone': '+255700000001',
            'message': 'Thanks!',
            'reward_code_id': code_id,
            'reward_title': 'Free Coffee',
        }))

        assert response.status_code == 502
        error = response.get_json()['error']
        assert error['code'] == 'DELIVERY_FAILED'
        assert 'credentials' in error['message']

        stored = RewardCode.query.get(code_id)
        assert stored.status == 'unused'
        assert stored.customer_id is None
        assert CustomerReward.query.count() == 0

    @patch('zawadii.services.sms_service.requests.post')
    def test_timeout_rolls_back(self, mock_post, client, auth_headers, sample_customer, sample_codes):
        mock_post.side_effect = requests.exceptions.Timeout()
        code_id = sample_codes[0].id

        response = client.post('/api/messages/send', headers=auth_headers, data=json.dumps({
            'phone': '+255700000001',
            'message': 'Thanks!',
            'reward_code_id': code_id,
        }))

        assert response.status_code == 502
        assert RewardCode.query.get(code_id).status == 'unused'

    @patch('zawadii.services.sms_service.requests.post')
    def test_unavailable_reward(self, mock_post, client, auth_headers, sample_customer, sample_codes):
        sample_codes[0].status = 'bought'
        db.session.commit()

        response = client.post('/api/messages/send', headers=auth_headers, data=json.dumps({
            'phone': '+255700000001',
            'message': 'Thanks!',
            'reward_code_id': sample_codes[0].id,
        }))

        assert response.status_code == 409
        assert response.get_json()['error']['code'] == 'REWARD_UNAVAILABLE'
        mock_post.assert_not_called()

    @patch('zawadii.services.sms_service.requests.post')
    def test_reward_for_walk_in_refused(self, mock_post, client, auth_headers, sample_codes):
        response = client.post('/api/messages/send', headers=auth_headers, data=json.dumps({
            'phone': '+255700000009',
            'message': 'Thanks!',
            'reward_code_id': sample_codes[0].id,
        }))

        assert response.status_code == 400
        mock_post.assert_not_called()
        assert RewardCode.query.get(sample_codes[0].id).status == 'unused'

    @pytest.mark.parametrize('payload, status', [
        ({'message': 'Hi'}, 400),
        ({'phone': '0700000001', 'message': 'Hi'}, 400),
        ({'phone': '+255700000001', 'message': ''}, 400),
        ({'phone': '+255700000001', 'message': 'x' * 501}, 400),
        ({'phone': '+255700000001', 'message': 'Hi', 'reward_code_id': 'abc'}, 400),
    ])
    @patch('zawadii.services.sms_service.requests.post')
    def test_invalid_input(self, mock_post, client, auth_headers, payload, status):
        response = client.post('/api/messages/send', headers=auth_headers, data=json.dumps(payload))

        assert response.status_code == status
        assert 'error' in response.get_json()
        mock_post.assert_not_called()


class TestAttachableRewards:
    """Tests for GET /api/messages/rewards."""

    def test_registered_customer(self, client, auth_headers, sample_customer, sample_codes):
        response = client.get(
            '/api/messages/rewards',
            headers=auth_headers,
            query_string={'phone': '+255700000001'}
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data['eligible'] is True
        assert data['count'] == 1
        assert data['rewards'][0]['reward_code'] == 'COF1018001'

    def test_unencoded_plus(self, client, auth_headers, sample_customer, sample_codes):
        response = client.get('/api/messages/rewards?phone=+255700000001', headers=auth_headers)

        assert response.get_json()['eligible'] is True

    def test_walk_in_gets_nothing(self, client, auth_headers, sample_codes):
        response = client.get(
            '/api/messages/rewards',
            headers=auth_headers,
            query_string={'phone': '+255700000009'}
        )

        data = response.get_json()
        assert data == {'rewards': [], 'eligible': False, 'count': 0}


class TestBulkSms:
    """Tests for POST /api/sms/send."""

    @patch('zawadii.services.sms_service.requests.post')
    def test_bulk_send(self, mock_post, client, auth_headers, beem_response):
        mock_post.return_value = beem_response(valid=2, invalid=1, request_id=55)

        response = client.post('/api/sms/send', headers=auth_headers, data=json.dumps({
            'recipients': [
                {'phone': '+255700000001'},
                {'phone': '+255700000002'},
                {'phone': '+255700000003'},
            ],
            'message': 'Promo today!',
        }))

        assert response.status_code == 200
        data = response.get_json()
        assert data['sent_count'] == 2
        assert data['failed_count'] == 1
        assert data['request_id'] == '55'

        recipients = mock_post.call_args.kwargs['json']['recipients']
        assert [r['recipient_id'] for r in recipients] == [1, 2, 3]

    @patch('zawadii.services.sms_service.requests.post')
    def test_bulk_send_provider_error(self, mock_post, client, auth_headers, beem_response):
        mock_post.return_value = beem_response(
            status_code=400, json_data={'code': 111, 'message': 'Invalid Sender Id'}
        )

        response = client.post('/api/sms/send', headers=auth_headers, data=json.dumps({
            'recipients': [{'phone': '+255700000001'}],
            'message': 'Promo today!',
        }))

        assert response.status_code == 502
        assert 'sender ID' in response.get_json()['error']['message']

    @pytest.mark.parametrize('payload', [
        {'message': 'Hi'},
        {'recipients': [], 'message': 'Hi'},
        {'recipients': [{'name': 'No phone'}], 'message': 'Hi'},
        {'recipients': [{'phone': '+255700000001'}], 'message': '  '},
    ])
    def test_bulk_send_validation(self, client, auth_headers, payload):
        response = client.post('/api/sms/send', headers=auth_headers, data=json.dumps(payload))
        assert response.status_code == 400


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'
