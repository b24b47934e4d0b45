import os

# Pas de Redis en tests: le lifespan désactive proprement le rate limiting
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import itertools
import threading
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app
from storefront.infra.supabase_client import get_db
from storefront.payments.lenco_client import PaymentResult, get_payment_gateway

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid or nodeid.startswith("unit/"):
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid or nodeid.startswith("integration/"):
            item.add_marker(pytest.mark.integration)

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: tests unitaires (aucun I/O)")
    config.addinivalue_line("markers", "integration: tests HTTP via TestClient")


class FakeDB:
    """
    Persistance en mémoire qui remplace les repositories Supabase.
    - Même signature que les fonctions de repository (client en premier argument, ignoré).
    - fail_on: noms d'opérations qui lèvent une erreur (simule une panne base).
    - threads: identifiant du thread de chaque appel.
    """

    def __init__(self):
        self.products: Dict[str, int] = {}
        self.stores: Dict[str, Dict[str, Any]] = {}
        self.coupons: List[Dict[str, Any]] = []
        self.customers: Dict[str, Dict[str, Any]] = {}
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.order_items: List[Dict[str, Any]] = []
        self.fail_on: set = set()
        self.calls: List[str] = []
        self.threads: List[int] = []
        self._ids = itertools.count(1)

    def _track(self, name: str):
        self.calls.append(name)
        self.threads.append(threading.get_ident())
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    # --- seed helpers
    def add_store(self, store_id: str, lat: Optional[float] = -15.4167, lng: Optional[float] = 28.2833, name: str = ""):
        self.stores[store_id] = {
            "id": store_id,
            "name": name or store_id,
            "pickup_address": f"{store_id} pickup point",
            "pickup_latitude": lat,
            "pickup_longitude": lng,
        }

    def add_order(self, order_id: str, store_id: str, escrow: str, status: str = "pending_payment"):
        self.orders[order_id] = {
            "id": order_id,
            "store_id": store_id,
            "status": status,
            "escrow_transaction_id": escrow,
            "delivery_code": None,
            "customer_email": "jane@pabondi.co.zm",
            "customer_name": "Jane Banda",
        }

    # --- delivery.repository
    def get_store_by_id(self, client, store_id):
        self._track("get_store_by_id")
        return self.stores.get(store_id)

    # --- coupons.repository
    def verify_coupon(self, client, code, store_id):
        self._track("verify_coupon")
        for row in self.coupons:
            if row["code"] == code and row["store_id"] == store_id:
                return row
        return None

    # --- checkout.repository
    def find_customer_by_email(self, client, email):
        self._track("find_customer_by_email")
        for row in self.customers.values():
            if row["email"] == email:
                return row
        return None

    def create_customer(self, client, data):
        self._track("create_customer")
        cid = f"cust-{next(self._ids)}"
        row = dict(data, id=cid)
        self.customers[cid] = row
        return row

    def update_customer(self, client, customer_id, data):
        self._track("update_customer")
        self.customers[customer_id].update(data)
        return self.customers[customer_id]

    def create_order(self, client, data):
        self._track("create_order")
        oid = f"order-{next(self._ids)}"
        row = dict(data, id=oid)
        self.orders[oid] = row
        return row

    def create_order_items(self, client, items):
        self._track("create_order_items")
        self.order_items.extend(dict(i) for i in items)

    def get_product_stock(self, client, product_id):
        self._track("get_product_stock")
        return self.products.get(product_id)

    def update_product_stock(self, client, product_id, new_count, expected_count=None):
        self._track("update_product_stock")
        if expected_count is not None and self.products.get(product_id) != expected_count:
            return False
        self.products[product_id] = new_count
        return True

    # --- payments.repository
    def find_orders_by_escrow_ids(self, client, identifiers):
        self._track("find_orders_by_escrow_ids")
        return [dict(o) for o in self.orders.values() if o.get("escrow_transaction_id") in identifiers]

    def update_order(self, client, order_id, fields, expected_status=None):
        self._track("update_order")
        if f"update_order:{order_id}" in self.fail_on:
            raise RuntimeError(f"update_order {order_id} failed")
        if expected_status is not None and self.orders[order_id].get("status") != expected_status:
            return False
        self.orders[order_id].update(fields)
        return True

    # --- orders.repository
    def get_order_details_by_id(self, client, order_id):
        self._track("get_order_details_by_id")
        return self.orders.get(order_id)

    def find_orders_by_search_term(self, client, term, limit=20):
        self._track("find_orders_by_search_term")
        t = term.lower()
        return [
            o for o in self.orders.values()
            if o["id"] == term or t == (o.get("customer_email") or "").lower() or t in (o.get("customer_name") or "").lower()
        ]


class FakeGateway:
    """Passerelle de paiement factice: échoue pour les boutiques listées dans decline_stores."""

    def __init__(self, decline_stores=(), raise_stores=()):
        self.decline_stores = set(decline_stores)
        self.raise_stores = set(raise_stores)
        self.calls: List[Dict[str, Any]] = []

    async def initiate_payment(self, phone, amount, reference):
        self.calls.append({"phone": phone, "amount": amount, "reference": reference})
        for store_id in self.raise_stores:
            if f"-{store_id[:8]}-" in reference:
                raise RuntimeError("gateway exploded")
        for store_id in self.decline_stores:
            if f"-{store_id[:8]}-" in reference:
                return PaymentResult(False, "Insufficient funds")
        return PaymentResult(True, "ok", transaction_id=f"TX-{len(self.calls)}")


@pytest.fixture
def fake_db(monkeypatch) -> FakeDB:
    db = FakeDB()
    targets = {
        "storefront.delivery.repository": ["get_store_by_id"],
        "storefront.coupons.repository": ["verify_coupon"],
        "storefront.checkout.repository": [
            "find_customer_by_email", "create_customer", "update_customer",
            "create_order", "create_order_items", "get_product_stock", "update_product_stock",
        ],
        "storefront.payments.repository": ["find_orders_by_escrow_ids", "update_order"],
        "storefront.orders.repository": ["get_order_details_by_id", "find_orders_by_search_term"],
    }
    for module, names in targets.items():
        for name in names:
            monkeypatch.setattr(f"{module}.{name}", getattr(db, name))
    return db

@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()

@pytest.fixture(scope="session")
def app():
    return create_app()

@pytest.fixture()
def client(app, fake_db, gateway) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_db] = lambda: object()
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
