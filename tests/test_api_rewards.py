"""
Tests for the Rewards API endpoints.

- Reward catalog CRUD
- Code generation, listing and deletion
- Default terms
"""
import json
import pytest

from zawadii.extensions import db
from zawadii.models import Reward, RewardCode, DEFAULT_TERMS


class TestRewardCatalog:
    """Tests for /api/rewards."""

    def test_list_empty(self, client, auth_headers):
        response = client.get('/api/rewards', headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json() == {'rewards': [], 'count': 0}

    def test_list_with_code_counts(self, client, auth_headers, sample_reward, sample_codes):
        sample_codes[0].status = 'bought'
        db.session.commit()

        response = client.get('/api/rewards', headers=auth_headers)

        data = response.get_json()
        assert data['count'] == 1
        assert data['rewards'][0]['title'] == 'Free Coffee'
        assert data['rewards'][0]['code_counts'] == {'unused': 2, 'pending': 0, 'bought': 1}

    def test_list_excludes_inactive(self, client, auth_headers, sample_reward):
        sample_reward.is_active = False
        db.session.commit()

        response = client.get('/api/rewards?include_inactive=false', headers=auth_headers)

        assert response.get_json()['count'] == 0

    def test_list_scoped_to_business(self, client, sample_reward, other_business):
        response = client.get('/api/rewards', headers={'X-Business-ID': str(other_business.id)})
        assert response.get_json()['count'] == 0

    def test_create(self, client, auth_headers):
        response = client.post('/api/rewards', headers=auth_headers, data=json.dumps({
            'title': '  Free Chapati ',
            'points_required': 50,
            'cost': '1500.00',
            'description': 'One chapati',
        }))

        assert response.status_code == 201
        reward = response.get_json()['reward']
        assert reward['title'] == 'Free Chapati'
        assert reward['points_required'] == 50
        assert reward['cost'] == 1500.0
        assert reward['uses_default_terms'] is True

    @pytest.mark.parametrize('payload', [
        {'points_required': 10},
        {'title': 'Tea'},
        {'title': '   ', 'points_required': 10},
        {'title': 'Tea', 'points_required': 'many'},
        {'title': 'Tea', 'points_required': -5},
        {'title': 'Tea', 'points_required': 5, 'cost': 'cheap'},
    ])
    def test_create_validation(self, client, auth_headers, payload):
        response = client.post('/api/rewards', headers=auth_headers, data=json.dumps(payload))
        assert response.status_code == 400
        assert Reward.query.count() == 0

    def test_get_with_terms(self, client, auth_headers, sample_reward):
        response = client.get(f'/api/rewards/{sample_reward.id}', headers=auth_headers)

        data = response.get_json()
        assert data['terms'] == DEFAULT_TERMS
        assert data['code_counts'] == {'unused': 0, 'pending': 0, 'bought': 0}

    def test_get_other_business_reward(self, client, sample_reward, other_business):
        response = client.get(
            f'/api/rewards/{sample_reward.id}',
            headers={'X-Business-ID': str(other_business.id)}
        )
        assert response.status_code == 404
        assert response.get_json()['error']['code'] == 'REWARD_NOT_FOUND'

    def test_update_custom_terms(self, client, auth_headers, sample_reward):
        response = client.put(f'/api/rewards/{sample_reward.id}', headers=auth_headers, data=json.dumps({
            'uses_default_terms': False,
            'terms_and_conditions': 'Weekdays only',
            'points_required': 120,
        }))

        assert response.status_code == 200
        reward = response.get_json()['reward']
        assert reward['points_required'] == 120
        assert reward['terms_and_conditions'] == 'Weekdays only'
        assert Reward.query.get(sample_reward.id).terms == 'Weekdays only'

    def test_delete_unused_reward(self, client, auth_headers, sample_reward, sample_codes):
        reward_id = sample_reward.id

        response = client.delete(f'/api/rewards/{reward_id}', headers=auth_headers)

        assert response.status_code == 200
        assert Reward.query.filter_by(id=reward_id).first() is None
        assert RewardCode.query.count() == 0

    def test_delete_refused_once_codes_handed_out(self, client, auth_headers, sample_reward, sample_codes):
        sample_codes[0].status = 'bought'
        db.session.commit()

        response = client.delete(f'/api/rewards/{sample_reward.id}', headers=auth_headers)

        assert response.status_code == 409
        assert RewardCode.query.count() == 3

    def test_default_terms_needs_no_business(self, client):
        response = client.get('/api/rewards/default-terms')
        assert response.status_code == 200
        assert response.get_json()['terms'] == DEFAULT_TERMS


class TestRewardCodes:
    """Tests for /api/rewards/<id>/codes and /api/rewards/codes/<id>."""

    def test_generate(self, client, auth_headers, sample_reward):
        response = client.post(
            f'/api/rewards/{sample_reward.id}/codes',
            headers=auth_headers,
            data=json.dumps({'quantity': 5})
        )

        assert response.status_code == 201
        data = response.get_json()
        assert data['count'] == 5
        codes = [c['code'] for c in data['codes']]
        assert all(code.startswith('COF') and len(code) == 10 for code in codes)
        assert codes == sorted(codes)
        assert len(set(codes)) == 5

    def test_generate_default_quantity(self, client, auth_headers, sample_reward):
        response = client.post(f'/api/rewards/{sample_reward.id}/codes', headers=auth_headers, data='{}')
        assert response.get_json()['count'] == 10

    @pytest.mark.parametrize('quantity', [0, 101])
    def test_generate_out_of_range(self, client, auth_headers, sample_reward, quantity):
        response = client.post(
            f'/api/rewards/{sample_reward.id}/codes',
            headers=auth_headers,
            data=json.dumps({'quantity': quantity})
        )

        assert response.status_code == 400
        assert response.get_json()['error']['code'] == 'INVALID_QUANTITY'

    def test_generate_unknown_reward(self, client, auth_headers):
        response = client.post('/api/rewards/999/codes', headers=auth_headers, data=json.dumps({'quantity': 1}))
        assert response.status_code == 404

    def test_list_by_status(self, client, auth_headers, sample_reward, sample_codes):
        sample_codes[2].status = 'pending'
        db.session.commit()

        response = client.get(f'/api/rewards/{sample_reward.id}/codes?status=pending', headers=auth_headers)

        data = response.get_json()
        assert data['count'] == 1
        assert data['codes'][0]['code'] == 'COF1018003'

    def test_list_bad_status(self, client, auth_headers, sample_reward):
        response = client.get(f'/api/rewards/{sample_reward.id}/codes?status=lost', headers=auth_headers)
        assert response.status_code == 400

    def test_delete_unused_code(self, client, auth_headers, sample_codes):
        code_id = sample_codes[0].id

        response = client.delete(f'/api/rewards/codes/{code_id}', headers=auth_headers)

        assert response.status_code == 200
        assert 'COF1018001' in response.get_json()['message']
        assert RewardCode.query.filter_by(id=code_id).first() is None

    def test_delete_bought_code_refused(self, client, auth_headers, sample_codes):
        sample_codes[0].status = 'bought'
        db.session.commit()

        response = client.delete(f'/api/rewards/codes/{sample_codes[0].id}', headers=auth_headers)

        assert response.status_code == 409
        assert RewardCode.query.filter_by(id=sample_codes[0].id).first() is not None
