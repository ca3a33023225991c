import asyncio
import uuid

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from auth import AuthService
from catalog import ProductCatalog
from database import Database
from main import app, bind_database

ADMIN_EMAIL = "admin@mystore.com"
ADMIN_PASS = "admin123"

PRODUCTS = [
    {"id": "P001", "name": "Headset", "price": 59.99, "stock": 15},
    {"id": "P002", "name": "Ergonomic Mouse", "price": 24.50, "stock": 50},
    {"id": "P003", "name": "Portable Charger", "price": 35.00, "stock": 0},
    {"id": "P004", "name": "4K Webcam Pro", "price": 89.00, "stock": 5},
]


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db():
    database = Database(AsyncMongoMockClient(), f"storefront_test_{uuid.uuid4().hex}")
    run(database.ensure_indexes())
    return database


@pytest.fixture
def seeded_db(db):
    run(ProductCatalog(db).seed(PRODUCTS))
    return db


def stock_of(db, product_id):
    doc = run(db.products.find_one({"id": product_id}))
    return doc["stock"]


def order_items(db, **query):
    async def fetch():
        return [doc async for doc in db.order_items.find(query)]
    return run(fetch())


@pytest.fixture
def client(seeded_db):
    bind_database(app, seeded_db)
    yield TestClient(app)
    app.state.db = None


@pytest.fixture
def admin_headers(client, seeded_db):
    run(AuthService(seeded_db).create_admin("store_manager", ADMIN_EMAIL, ADMIN_PASS))
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASS})
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def customer_headers(client):
    client.post("/api/register", json={"name": "Alice", "email": "alice@mystore.com", "password": "s3cret"})
    response = client.post("/api/login", json={"email": "alice@mystore.com", "password": "s3cret"})
    return {"Authorization": f"Bearer {response.json()['token']}"}
