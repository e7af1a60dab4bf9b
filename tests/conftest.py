"""
Shared fixtures: an app on in-memory SQLite, one business, one registered
customer and a reward with a few unused codes.
"""
import pytest
from unittest.mock import MagicMock

from zawadii import create_app
from zawadii.extensions import db
from zawadii.models import Business, Customer, Reward, RewardCode, RewardCodeStatus


@pytest.fixture
def app():
    """Create test application."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sample_business(app):
    business = Business(name='Mama Lishe Cafe', settings={})
    db.session.add(business)
    db.session.commit()
    return business


@pytest.fixture
def other_business(app):
    business = Business(name='Other Shop', settings={})
    db.session.add(business)
    db.session.commit()
    return business


@pytest.fixture
def sample_customer(app):
    customer = Customer(phone_number='+255700000001', full_name='Asha Juma')
    db.session.add(customer)
    db.session.commit()
    return customer


@pytest.fixture
def sample_reward(app, sample_business):
    reward = Reward(
        business_id=sample_business.id,
        title='Free Coffee',
        points_required=100,
    )
    db.session.add(reward)
    db.session.commit()
    return reward


@pytest.fixture
def sample_codes(app, sample_business, sample_reward):
    """Three unused codes, COF1018001-COF1018003."""
    codes = [
        RewardCode(
            reward_id=sample_reward.id,
            business_id=sample_business.id,
            code=f'COF1018{n:03d}',
            status=RewardCodeStatus.UNUSED.value,
        )
        for n in range(1, 4)
    ]
    db.session.add_all(codes)
    db.session.commit()
    return codes


@pytest.fixture
def auth_headers(sample_business):
    return {
        'X-Business-ID': str(sample_business.id),
        'Content-Type': 'application/json'
    }


@pytest.fixture
def beem_response():
    """Factory for mock requests.Response objects shaped like a Beem send reply."""
    def make(status_code=200, json_data=None, valid=1, invalid=0, duplicates=0, request_id=4242):
        response = MagicMock()
        response.status_code = status_code
        if json_data is None:
            json_data = {
                'successful': True,
                'request_id': request_id,
                'code': 100,
                'message': 'Message Submitted Successfully',
                'valid': valid,
                'invalid': invalid,
                'duplicates': duplicates,
            }
        response.json.return_value = json_data
        return response
    return make
