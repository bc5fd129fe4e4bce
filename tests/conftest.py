import itertools

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import get_db
from errors import InternalError
from main import app
from payments import Authorization, get_gateway


class FakeGateway:
    """In-process stand-in for Stripe: intents live in a dict"""

    def __init__(self):
        self.intents = {}
        self.authorized = []
        self._ids = itertools.count(1)

    def authorize(self, amount, currency, metadata):
        auth = Authorization(
            id=f"pi_test_{next(self._ids)}",
            status="requires_payment_method",
            client_secret="secret_xyz",
            amount=amount,
            currency=currency,
        )
        self.intents[auth.id] = auth
        self.authorized.append({"amount": amount, "currency": currency, "metadata": metadata})
        return auth

    def retrieve(self, authorization_id):
        if authorization_id not in self.intents:
            raise InternalError(f"No such payment_intent: {authorization_id}")
        return self.intents[authorization_id]

    def add(self, authorization_id, status):
        self.intents[authorization_id] = Authorization(id=authorization_id, status=status)


@pytest.fixture
def mongo():
    return mongomock.MongoClient()["medicine_shop_test"]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(mongo, gateway):
    app.dependency_overrides[get_db] = lambda: mongo
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
