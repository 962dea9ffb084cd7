"""Shared fixtures: in-memory Mongo via mongomock and an HTTP client with
redis and the payment provider replaced by test doubles."""

import mongomock
import pytest
import redis
from fastapi.testclient import TestClient
from mongoengine import connect, disconnect

from main import app
from app.connections.redis import get_redis
from app.models.coupon import Coupon
from app.models.payment import Payment
from app.models.product import Product
from app.models.review import Review
from app.models.user import User
from app.services.auth import TokenClaims, issue_token
from app.services.payments import PaymentIntent, get_payment_provider
from app.utils.config import settings


class FakeRedis:
    """Answers the two calls the rate limiter makes."""

    def __init__(self, enforce: bool = False):
        self.enforce = enforce
        self.ttls: dict[str, int] = {}

    def ttl(self, key: str) -> int:
        if not self.enforce:
            return -2
        return self.ttls.get(key, -2)

    def setex(self, name: str, time: int, value: str) -> bool:
        self.ttls[name] = time
        return True


class BrokenRedis:
    """A redis client whose server is unreachable."""

    def ttl(self, key: str) -> int:
        raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def setex(self, name: str, time: int, value: str) -> bool:
        raise redis.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


class FakePaymentProvider:
    def __init__(self):
        self.requested: list[float] = []

    def create_intent(self, price: float) -> PaymentIntent:
        self.requested.append(price)
        return PaymentIntent(client_secret=f"pi_secret_{len(self.requested)}", amount=price, currency="usd")


@pytest.fixture(scope="session", autouse=True)
def mongo():
    connect("products_hunt_test", host="mongodb://localhost", alias="default",
            mongo_client_class=mongomock.MongoClient)
    yield
    disconnect(alias="default")


@pytest.fixture(autouse=True)
def clean_collections(mongo):
    yield
    for document in (Review, Product, User, Coupon, Payment):
        document.objects.delete()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest.fixture
def client(fake_redis: FakeRedis, payment_provider: FakePaymentProvider):
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_payment_provider] = lambda: payment_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(email: str, role: str = "none", name: str | None = None) -> User:
    user = User(email=email.lower(), name=name or email.split("@")[0], role=role)
    user.save()
    return user


def login(client: TestClient, email: str, role: str = "none", name: str | None = None) -> None:
    """Put a session cookie for ``email`` on the client."""
    token = issue_token(TokenClaims(email=email.lower(), name=name, role=role))
    client.cookies.clear()
    client.cookies.set(settings.token_cookie_name, token)
