import logging
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from customerbook.errors import StoreError
from customerbook.gateway import FirestoreGateway, InMemoryGateway
from customerbook.models import Customer


# ===========================================================================
# InMemoryGateway
# ===========================================================================

class TestInMemoryGateway:

    def test_list_all_empty(self):
        future = InMemoryGateway().list_all()
        assert future.done()
        assert future.result() == []

    def test_list_all_keeps_store_order_and_defaults(self):
        gateway = InMemoryGateway({"b": {"name": "Bob"}, "a": {"name": "Ana", "phone": "12345678"}})
        customers = gateway.list_all().result()
        assert [c.id for c in customers] == ["b", "a"]
        assert customers[0] == Customer("b", "Bob", "", "")

    def test_upsert_without_id_assigns_one(self):
        gateway = InMemoryGateway(id_factory=lambda: "new-1")
        assert gateway.upsert(None, "Ana", "12345678", "a@x.com").result() == "new-1"
        assert gateway.documents() == {"new-1": {"name": "Ana", "phone": "12345678", "email": "a@x.com"}}

    def test_upsert_treats_empty_id_as_create(self):
        gateway = InMemoryGateway(id_factory=lambda: "fresh")
        assert gateway.upsert("", "Ana", "12345678", "").result() == "fresh"

    def test_upsert_with_id_replaces_whole_document(self):
        gateway = InMemoryGateway({"7": {"name": "Bob", "phone": "99999999", "email": "b@x.com"}})
        assert gateway.upsert("7", "Robert", "88888888", "").result() == "7"
        assert gateway.documents()["7"] == {"name": "Robert", "phone": "88888888", "email": ""}

    def test_delete(self):
        gateway = InMemoryGateway({"7": {"name": "Bob"}, "8": {"name": "Eve"}})
        assert gateway.delete("7").result() is None
        assert list(gateway.documents()) == ["8"]

    def test_delete_missing_id_succeeds(self):
        assert InMemoryGateway().delete("nope").result() is None

    def test_runs_on_executor(self):
        with ThreadPoolExecutor(max_workers=1) as pool:
            gateway = InMemoryGateway(executor=pool)
            new_id = gateway.upsert(None, "Ana", "12345678", "").result(timeout=5)
            assert [c.id for c in gateway.list_all().result(timeout=5)] == [new_id]


# ===========================================================================
# Failure handling (shared base class)
# ===========================================================================

class BrokenGateway(InMemoryGateway):
    def _list_all(self):
        raise ConnectionError("offline")

    def _upsert(self, customer_id, name, phone, email):
        raise PermissionError("denied")

    def _delete(self, customer_id):
        raise ConnectionError("offline")


class TestFailures:

    def test_failures_are_delivered_through_future(self):
        gateway = BrokenGateway()
        for future, operation in (
            (gateway.list_all(), "list_all"),
            (gateway.upsert(None, "a", "12345678", ""), "upsert"),
            (gateway.delete("1"), "delete"),
        ):
            assert future.done()
            error = future.exception()
            assert isinstance(error, StoreError)
            assert error.operation == operation
            assert error.cause is not None

    def test_list_failure_logged_as_warning(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="customerbook.gateway"):
            BrokenGateway().list_all()
        assert [r.levelno for r in caplog.records] == [logging.WARNING]

    def test_write_failures_logged_as_error(self, caplog):
        gateway = BrokenGateway()
        with caplog.at_level(logging.DEBUG, logger="customerbook.gateway"):
            gateway.upsert("1", "a", "12345678", "")
            gateway.delete("1")
        assert [r.levelno for r in caplog.records] == [logging.ERROR, logging.ERROR]

    def test_shut_down_executor_gives_failed_future(self):
        pool = ThreadPoolExecutor(max_workers=1)
        pool.shutdown()
        future = InMemoryGateway(executor=pool).list_all()
        assert isinstance(future.exception(), StoreError)

    def test_failure_on_worker_thread(self):
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = BrokenGateway(executor=pool).delete("1")
            assert isinstance(future.exception(timeout=5), StoreError)


# ===========================================================================
# FirestoreGateway (mocked client)
# ===========================================================================

def _snapshot(doc_id, data):
    snap = MagicMock()
    snap.id = doc_id
    snap.to_dict.return_value = data
    return snap


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def firestore_gateway(client):
    with ThreadPoolExecutor(max_workers=1) as pool:
        yield FirestoreGateway(client=client, collection="Customers", executor=pool, timeout=5.0)


class TestFirestoreGateway:

    def test_list_all_maps_documents(self, firestore_gateway, client):
        collection = client.collection.return_value
        collection.stream.return_value = iter([
            _snapshot("a", {"name": "Ana", "phone": "12345678", "email": "a@x.com"}),
            _snapshot("b", {"name": "Bob"}),
        ])
        customers = firestore_gateway.list_all().result(timeout=5)
        client.collection.assert_called_with("Customers")
        collection.stream.assert_called_once_with(retry=None, timeout=5.0)
        assert customers == [Customer("a", "Ana", "12345678", "a@x.com"), Customer("b", "Bob", "", "")]

    def test_create_uses_add(self, firestore_gateway, client):
        ref = MagicMock()
        ref.id = "generated"
        collection = client.collection.return_value
        collection.add.return_value = (object(), ref)
        assert firestore_gateway.upsert(None, "Ana", "12345678", "a@x.com").result(timeout=5) == "generated"
        collection.add.assert_called_once_with(
            {"name": "Ana", "phone": "12345678", "email": "a@x.com"}, retry=None, timeout=5.0
        )
        collection.document.assert_not_called()

    def test_update_uses_full_set(self, firestore_gateway, client):
        collection = client.collection.return_value
        assert firestore_gateway.upsert("7", "Bob", "99999999", "b@x.com").result(timeout=5) == "7"
        collection.document.assert_called_once_with("7")
        collection.document.return_value.set.assert_called_once_with(
            {"name": "Bob", "phone": "99999999", "email": "b@x.com"}, retry=None, timeout=5.0
        )
        collection.add.assert_not_called()

    def test_delete(self, firestore_gateway, client):
        collection = client.collection.return_value
        assert firestore_gateway.delete("7").result(timeout=5) is None
        collection.document.assert_called_once_with("7")
        collection.document.return_value.delete.assert_called_once_with(retry=None, timeout=5.0)

    def test_client_errors_become_store_errors(self, firestore_gateway, client):
        client.collection.return_value.stream.side_effect = RuntimeError("deadline exceeded")
        error = firestore_gateway.list_all().exception(timeout=5)
        assert isinstance(error, StoreError)
        assert isinstance(error.cause, RuntimeError)

    def test_close_keeps_injected_client(self, client):
        with ThreadPoolExecutor(max_workers=1) as pool:
            gateway = FirestoreGateway(client=client, executor=pool)
            gateway.close()
            gateway.close()
        client.close.assert_not_called()
