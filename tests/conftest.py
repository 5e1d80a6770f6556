import os
import tempfile

# до импорта приложения: отдельная SQLite-база и папка загрузок на прогон
_TMP = tempfile.mkdtemp(prefix="workcenter-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import workcenter.models  # noqa: E402,F401
from workcenter.db import Base, SessionLocal, engine, init_db  # noqa: E402
from workcenter.main import app  # noqa: E402
from workcenter.models.catalog import Product  # noqa: E402
from workcenter.models.customer import Customer  # noqa: E402
from workcenter.models.user import User  # noqa: E402
from workcenter.routers import auth as auth_router  # noqa: E402
from workcenter.utils.security import hash_password  # noqa: E402

PASSWORD = "secret1"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    init_db()
    auth_router.login_attempts.clear()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make(username: str, role: str = "STANDARD", status: str = "ACTIVE") -> User:
        user = User(
            username=username,
            name=username.title(),
            password_hash=hash_password(PASSWORD),
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_customer(db):
    def _make(name: str = "Casey Carter", **kw) -> Customer:
        data = {
            "phone": "555-0100",
            "email": "casey@example.com",
            "shipping_address": "12 Main St, Springfield",
        }
        data.update(kw)
        customer = Customer(name=name, **data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer
    return _make


@pytest.fixture
def make_product(db):
    def _make(name: str = "Oak Stick", price: str = "5.00", status: str = "ACTIVE") -> Product:
        product = Product(name=name, price=Decimal(price), status=status)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


def _login(username: str) -> TestClient:
    client = TestClient(app)
    resp = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def admin(make_user) -> User:
    return make_user("jordan.admin", role="ADMIN")


@pytest.fixture
def admin_client(admin) -> TestClient:
    return _login(admin.username)


@pytest.fixture
def standard_client(make_user) -> TestClient:
    user = make_user("kaden.standard", role="STANDARD")
    return _login(user.username)


@pytest.fixture
def readonly_client(make_user) -> TestClient:
    user = make_user("riley.viewer", role="READ_ONLY")
    return _login(user.username)
