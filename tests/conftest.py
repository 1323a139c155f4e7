"""
Pytest configuration and global fixtures.

The catalog REST API is replaced by :class:`FakeBackend`, an in-memory
implementation served through ``httpx.MockTransport`` so the real client,
envelope handling and error mapping are exercised end to end.
"""
import itertools
import json
import re

import httpx
import pytest

from catalog_admin import create_app


SERVICE_TOKEN = "service-token"
API_PREFIX = "/api"


def _envelope(data=None, status=200, message="OK"):
    return httpx.Response(status, json={"status": status, "data": data, "message": message})


class FakeBackend:
    """A tiny stand-in for the catalog REST API."""

    def __init__(self):
        self.users = {
            "admin": {"id": "u1", "username": "admin", "role": "admin", "email": "admin@example.com"},
            "manager": {"id": "u2", "username": "manager", "role": "manager"},
            "staff": {"id": "u3", "username": "staff", "role": "staff"},
            "owner": {"id": "u4", "username": "owner", "role": "owner"},
        }
        self.password = "secret"
        self.tokens = {SERVICE_TOKEN}
        self.categories = {}
        self.products = {}
        self.contacts = {}
        self.profile = {
            "id": "p1",
            "company_name": "Bean Counter Co",
            "username": "admin",
            "email": "hello@example.com",
            "phone": "555-0100",
            "address": "1 Roast Street",
        }
        self.requests = []
        self.failures = {}
        self._ids = itertools.count(100)

    # Seeding ----------------------------------------------------------
    def add_category(self, id, name, parent_id=None, sort_order=0, is_active=True, level=None):
        if level is None:
            parent = self.categories.get(parent_id) if parent_id else None
            level = parent["level"] + 1 if parent else 0
        self.categories[id] = {
            "id": id,
            "name": name,
            "slug": re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-"),
            "description": None,
            "parent_id": parent_id,
            "sort_order": sort_order,
            "level": level,
            "is_active": is_active,
            "media_id": None,
            "created_at": "2024-03-01T10:00:00Z",
            "updated_at": "2024-03-01T10:00:00Z",
        }
        return self.categories[id]

    def add_product(self, id, name, price="9.50", short_description=None):
        self.products[id] = {
            "id": id,
            "name": name,
            "price": price,
            "short_description": short_description,
            "description": None,
            "is_active": True,
            "images": [],
        }
        return self.products[id]

    def add_contact(self, id, name, status="new", created_at="2024-03-02T09:00:00Z"):
        self.contacts[id] = {
            "id": id,
            "name": name,
            "phone": "555-0199",
            "address": None,
            "message": f"Hello from {name}",
            "status": status,
            "created_at": created_at,
        }
        return self.contacts[id]

    def seed_catalog(self):
        self.add_category("1", "Drinks", sort_order=1)
        self.add_category("2", "Coffee", parent_id="1", sort_order=1)
        self.add_category("3", "Tea", parent_id="1", sort_order=2)
        self.add_category("4", "Espresso", parent_id="2")
        self.add_category("5", "Food", sort_order=2)
        self.add_product("10", "Espresso Beans", short_description="Dark roast")
        self.add_product("11", "Green Tea", price="4.00")
        self.add_contact("c1", "Alice")
        self.add_contact("c2", "Bob", status="read", created_at="2024-03-01T09:00:00Z")
        return self

    def fail(self, method, path, status=500, message="Backend exploded"):
        self.failures[(method, path)] = (status, message)

    def calls(self, method, path=None):
        return [
            call for call in self.requests
            if call["method"] == method and (path is None or call["path"] == path)
        ]

    # Transport --------------------------------------------------------
    @property
    def transport(self):
        return httpx.MockTransport(self.handle)

    def handle(self, request):
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        body = json.loads(request.content) if request.content else None
        self.requests.append(
            {"method": request.method, "path": path, "params": dict(request.url.params), "json": body}
        )

        failure = self.failures.get((request.method, path))
        if failure:
            status, message = failure
            return _envelope(None, status=status, message=message)

        if path == "/auth/login":
            return self._login(body or {})

        auth = request.headers.get("Authorization", "")
        if auth[len("Bearer "):] not in self.tokens:
            return _envelope(None, status=401, message="Unauthorized")

        parts = [part for part in path.split("/") if part]
        resource = parts[0] if parts else ""
        item_id = parts[1] if len(parts) > 1 else None
        routes = {
            "auth": self._auth_route,
            "category": self._category,
            "product": self._product,
            "product-image": self._product_image,
            "contact": self._contact,
            "profile": self._profile,
            "media": self._media,
        }
        handler = routes.get(resource)
        if handler is None:
            return _envelope(None, status=404, message="Not found")
        return handler(request.method, item_id, body, request.url.params)

    def _login(self, body):
        user = self.users.get(body.get("username"))
        if user is None or body.get("password") != self.password:
            return _envelope(None, status=401, message="Invalid credentials")
        token = f"token-{user['username']}"
        self.tokens.add(token)
        return _envelope({"token": token, "user": dict(user)})

    def _auth_route(self, method, item_id, body, params):
        if item_id == "logout":
            return _envelope(None)
        if item_id == "me":
            return _envelope(dict(self.users["admin"]))
        return _envelope(None, status=404, message="Not found")

    def _category(self, method, item_id, body, params):
        if item_id is None:
            if method == "GET":
                return _envelope(list(self.categories.values()))
            new_id = str(next(self._ids))
            record = self.add_category(new_id, body["name"], parent_id=body.get("parent_id"))
            record.update(body)
            return _envelope(record)
        record = self.categories.get(item_id)
        if record is None:
            return _envelope(None, status=404, message="Category not found")
        if method == "GET":
            return _envelope(record)
        if method == "PUT":
            record.update(body)
            return _envelope(record)
        if method == "DELETE":
            children = [key for key, item in self.categories.items() if item["parent_id"] == item_id]
            if children and params.get("cascade") != "true":
                return _envelope(None, status=400, message="Category has subcategories")
            self._remove_category(item_id)
            return _envelope(None)
        return _envelope(None, status=405, message="Method not allowed")

    def _remove_category(self, item_id):
        for key in [key for key, item in self.categories.items() if item["parent_id"] == item_id]:
            self._remove_category(key)
        del self.categories[item_id]

    def _product(self, method, item_id, body, params):
        if item_id is None:
            if method == "GET":
                return _envelope(list(self.products.values()))
            record = self.add_product(str(next(self._ids)), body["name"])
            record.update(body)
            return _envelope(record)
        record = self.products.get(item_id)
        if record is None:
            return _envelope(None, status=404, message="Product not found")
        if method == "GET":
            return _envelope(record)
        if method == "PUT":
            record.update(body)
            return _envelope(record)
        del self.products[item_id]
        return _envelope(None)

    def _product_image(self, method, item_id, body, params):
        if method == "POST":
            image = {"id": str(next(self._ids)), **body}
            self.products[body["product_id"]]["images"].append(image)
            return _envelope(image)
        for product in self.products.values():
            product["images"] = [image for image in product["images"] if image["id"] != item_id]
        return _envelope(None)

    def _contact(self, method, item_id, body, params):
        if item_id is None:
            return _envelope(list(self.contacts.values()))
        record = self.contacts.get(item_id)
        if record is None:
            return _envelope(None, status=404, message="Contact not found")
        if method == "GET":
            return _envelope(record)
        if method == "PUT":
            record.update(body)
            return _envelope(record)
        del self.contacts[item_id]
        return _envelope(None)

    def _profile(self, method, item_id, body, params):
        if method == "PUT":
            self.profile.update(body)
        return _envelope(self.profile)

    def _media(self, method, item_id, body, params):
        return _envelope({"id": str(next(self._ids)), **body})


@pytest.fixture
def backend():
    return FakeBackend().seed_catalog()


@pytest.fixture
def app(backend):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "API_BASE_URL": "http://catalog.test/api",
            "API_TOKEN": SERVICE_TOKEN,
            "API_TRANSPORT": backend.transport,
            "STORAGE_URL": "",
            "STORAGE_SERVICE_KEY": "",
        }
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Sign in as one of the fake backend users."""

    def _login(username="admin", password="secret"):
        return client.post("/login", data={"username": username, "password": password})

    return _login
