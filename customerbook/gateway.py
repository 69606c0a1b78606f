"""
Design (gateway.py)
- Purpose: The only component that touches the remote document store. Exposes the three
           operations the app needs (list_all, upsert, delete) as asynchronous calls.
- Inputs: Customer fields / document ids.
- Outputs: concurrent.futures.Future resolving to the value, or failing with StoreError.
- Side effects: Remote reads/writes (Firestore) or in-process dict mutations (memory backend).
- Thread-safety: Remote calls run on the gateway's executor; completion callbacks fire on
                 worker threads. InMemoryGateway guards its documents with a lock.
- No operation retries internally and none raises synchronously.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Mapping, Optional

from google.cloud import firestore

from .config import COLLECTION_NAME, FIRESTORE_PROJECT, GATEWAY_WORKERS, STORE_TIMEOUT_SEC
from .errors import StoreError
from .models import Customer, document_for

logger = logging.getLogger(__name__)


class CustomerGateway(ABC):
    """
    Design (CustomerGateway)
    - Public methods (asynchronous, return Future):
        list_all(): every customer in the collection, in store order.
        upsert(customer_id, name, phone, email): full replace when customer_id is set,
            otherwise create with a store-assigned id. Resolves to the id.
        delete(customer_id): remove the document.
    - Subclasses implement the blocking _list_all/_upsert/_delete; this class runs them
      on the executor (or inline when none is given) and turns any failure into StoreError.
    """

    def __init__(self, executor: Optional[Executor] = None) -> None:
        self._executor = executor

    # -------- public asynchronous API --------

    def list_all(self) -> "Future[List[Customer]]":
        return self._submit("list_all", logging.WARNING, self._list_all)

    def upsert(self, customer_id: Optional[str], name: str, phone: str, email: str) -> "Future[str]":
        return self._submit("upsert", logging.ERROR, self._upsert, customer_id or None, name, phone, email)

    def delete(self, customer_id: str) -> "Future[None]":
        return self._submit("delete", logging.ERROR, self._delete, customer_id)

    def close(self) -> None:
        """Release resources held by the backend. Safe to call more than once."""

    # -------- backend hooks (blocking, may raise) --------

    @abstractmethod
    def _list_all(self) -> List[Customer]:
        ...

    @abstractmethod
    def _upsert(self, customer_id: Optional[str], name: str, phone: str, email: str) -> str:
        ...

    @abstractmethod
    def _delete(self, customer_id: str) -> None:
        ...

    # -------- execution --------

    def _submit(self, operation: str, failure_level: int, fn: Callable, *args) -> Future:
        def call():
            try:
                return fn(*args)
            except Exception as exc:
                logger.log(failure_level, "%s failed: %s", operation, exc)
                if isinstance(exc, StoreError):
                    raise
                raise StoreError(operation, exc) from exc

        if self._executor is not None:
            try:
                return self._executor.submit(call)
            except RuntimeError as exc:
                # executor already shut down
                logger.log(failure_level, "%s not scheduled: %s", operation, exc)
                return _failed(StoreError(operation, exc))

        future: Future = Future()
        try:
            future.set_result(call())
        except StoreError as exc:
            future.set_exception(exc)
        return future


def _failed(exc: BaseException) -> Future:
    future: Future = Future()
    future.set_exception(exc)
    return future


class FirestoreGateway(CustomerGateway):
    """
    Design (FirestoreGateway)
    - Backend for a Firestore collection whose documents hold name/phone/email strings.
    - The client is created lazily on the first call, so missing credentials surface
      as a StoreError from that call rather than at construction.
    - Every client call passes retry=None (no internal retries) and a per-call timeout.
    """

    def __init__(
        self,
        client: Optional[firestore.Client] = None,
        collection: str = COLLECTION_NAME,
        project: Optional[str] = FIRESTORE_PROJECT,
        executor: Optional[Executor] = None,
        timeout: float = STORE_TIMEOUT_SEC,
    ) -> None:
        self._owns_executor = executor is None
        if executor is None:
            executor = ThreadPoolExecutor(max_workers=GATEWAY_WORKERS, thread_name_prefix="firestore")
        super().__init__(executor)
        self._client = client
        self._owns_client = client is None
        self._collection_name = collection
        self._project = project
        self._timeout = timeout
        self._client_lock = threading.Lock()

    def _collection(self):
        with self._client_lock:
            if self._client is None:
                logger.info("Connecting to Firestore (project=%s)", self._project or "<default>")
                self._client = firestore.Client(project=self._project)
            return self._client.collection(self._collection_name)

    def _list_all(self) -> List[Customer]:
        snapshots = self._collection().stream(retry=None, timeout=self._timeout)
        customers = [Customer.from_document(snap.id, snap.to_dict()) for snap in snapshots]
        logger.debug("Fetched %d customers from %s", len(customers), self._collection_name)
        return customers

    def _upsert(self, customer_id: Optional[str], name: str, phone: str, email: str) -> str:
        data = document_for(name, phone, email)
        if customer_id:
            self._collection().document(customer_id).set(data, retry=None, timeout=self._timeout)
            logger.info("Customer %s updated", customer_id)
            return customer_id
        _, ref = self._collection().add(data, retry=None, timeout=self._timeout)
        logger.info("Customer added with ID: %s", ref.id)
        return ref.id

    def _delete(self, customer_id: str) -> None:
        self._collection().document(customer_id).delete(retry=None, timeout=self._timeout)
        logger.info("Customer %s deleted", customer_id)

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
        with self._client_lock:
            if self._owns_client and self._client is not None:
                self._client.close()
                self._client = None


class InMemoryGateway(CustomerGateway):
    """
    Design (InMemoryGateway)
    - Process-local collection for demo runs without credentials, and for tests.
    - State: _documents {doc_id -> {"name","phone","email"}}, insertion-ordered.
    - Runs inline (completed futures) unless an executor is given.
    - Deleting a missing id succeeds, as it does in Firestore.
    """

    def __init__(
        self,
        documents: Optional[Mapping[str, Mapping[str, str]]] = None,
        executor: Optional[Executor] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        super().__init__(executor)
        self._lock = threading.Lock()
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:20])
        self._documents: Dict[str, Dict[str, str]] = {}
        for doc_id, data in (documents or {}).items():
            self._documents[doc_id] = Customer.from_document(doc_id, data).to_document()

    def documents(self) -> Dict[str, Dict[str, str]]:
        """Copy of the stored documents (for inspection)."""
        with self._lock:
            return {doc_id: dict(data) for doc_id, data in self._documents.items()}

    def _list_all(self) -> List[Customer]:
        with self._lock:
            return [Customer.from_document(doc_id, data) for doc_id, data in self._documents.items()]

    def _upsert(self, customer_id: Optional[str], name: str, phone: str, email: str) -> str:
        with self._lock:
            if not customer_id:
                customer_id = self._id_factory()
                logger.info("Customer added with ID: %s", customer_id)
            else:
                logger.info("Customer %s updated", customer_id)
            self._documents[customer_id] = document_for(name, phone, email)
            return customer_id

    def _delete(self, customer_id: str) -> None:
        with self._lock:
            self._documents.pop(customer_id, None)
        logger.info("Customer %s deleted", customer_id)
