"""
Design (controller.py)
- Purpose: Own the in-memory customer list and the edit form, and sequence every user action
           against the gateway: validate -> write -> refetch -> reset form.
- Inputs: User intents (field edits, submit, clear, start-edit, delete, refresh).
- Outputs: ViewState snapshots pushed to listeners; StoreErrors pushed to error listeners.
- Side effects: Gateway calls; a display timer for the "Saving..." indicator.
- Thread-safety: Gateway completions arrive on worker threads. All state reads/writes take
                 _lock; gateway calls and listener notifications happen outside it.
"""

import logging
import threading
from concurrent.futures import Future
from dataclasses import replace
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .config import SAVING_DISPLAY_SEC
from .errors import StoreError, ValidationError
from .gateway import CustomerGateway
from .models import Customer, FormState, ViewState
from .utils import is_digits, is_valid_phone, require_valid_phone

logger = logging.getLogger(__name__)

Listener = Callable[[ViewState], None]
ErrorListener = Callable[[str, StoreError], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]


def _daemon_timer(seconds: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(seconds, fn)
    timer.daemon = True
    return timer


def _store_error(future: Future, operation: str) -> Optional[StoreError]:
    """Return the StoreError carried by a finished future, or None on success."""
    if future.cancelled():
        return StoreError(operation)
    exc = future.exception()
    if exc is None:
        return None
    if isinstance(exc, StoreError):
        return exc
    return StoreError(operation, exc)


def _unique_by_id(customers: Iterable[Customer]) -> Tuple[Customer, ...]:
    seen = set()
    unique = []
    for customer in customers:
        if customer.id in seen:
            continue
        seen.add(customer.id)
        unique.append(customer)
    return tuple(unique)


class CustomerController:
    """
    Design (CustomerController)
    - State:
        _customers: tuple of Customer, replaced wholesale after each successful load
        _form: FormState (Create mode when editing_id is None, Edit mode otherwise)
        _save_token: id of the latest submission; stale completions/timers never clear a newer one
        _save_timer: display timer of the latest submission (None when disabled or finished)
    - Saving rule: completion of the write clears `saving` and cancels its timer; the timer
      clears `saving` early if the write is slow. saving_timeout=None disables the timer.
    """

    def __init__(
        self,
        gateway: CustomerGateway,
        saving_timeout: Optional[float] = SAVING_DISPLAY_SEC,
        timer_factory: TimerFactory = _daemon_timer,
    ) -> None:
        self._gateway = gateway
        self._saving_timeout = saving_timeout
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._customers: Tuple[Customer, ...] = ()
        self._form = FormState()
        self._save_token = 0
        self._save_timer: Any = None
        self._listeners: List[Listener] = []
        self._error_listeners: List[ErrorListener] = []

    # -------- observation --------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)
        return lambda: self._unsubscribe(self._listeners, listener)

    def add_error_listener(self, listener: ErrorListener) -> Callable[[], None]:
        with self._lock:
            self._error_listeners.append(listener)
        return lambda: self._unsubscribe(self._error_listeners, listener)

    def _unsubscribe(self, listeners: list, listener) -> None:
        with self._lock:
            if listener in listeners:
                listeners.remove(listener)

    def snapshot(self) -> ViewState:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> ViewState:
        form = self._form
        return ViewState(
            name=form.name,
            phone=form.phone,
            email=form.email,
            editing_id=form.editing_id,
            phone_invalid=form.phone_invalid,
            saving=form.saving,
            customers=self._customers,
        )

    # -------- read accessors --------

    @property
    def customers(self) -> Tuple[Customer, ...]:
        with self._lock:
            return self._customers

    @property
    def form(self) -> FormState:
        """Copy of the current form state."""
        with self._lock:
            return replace(self._form)

    @property
    def record_count(self) -> int:
        return len(self.customers)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    @property
    def submit_label(self) -> str:
        return self.snapshot().submit_label

    def get(self, customer_id: str) -> Optional[Customer]:
        with self._lock:
            for customer in self._customers:
                if customer.id == customer_id:
                    return customer
        return None

    # -------- form intents --------

    def change_name(self, value: str) -> None:
        with self._lock:
            self._form.name = value
        self._notify()

    def change_email(self, value: str) -> None:
        with self._lock:
            self._form.email = value
        self._notify()

    def change_phone(self, value: str) -> bool:
        """
        Purpose: Accept a new phone value only if it is all digits.
        Outputs: True if accepted (field updated, phone_invalid recomputed); False if rejected.
        """
        if not is_digits(value):
            return False
        with self._lock:
            self._form.phone = value
            self._form.phone_invalid = not is_valid_phone(value)
        self._notify()
        return True

    def start_edit(self, customer: Customer) -> None:
        """Load a customer into the form and switch to Edit mode."""
        with self._lock:
            form = self._form
            form.name = customer.name
            form.phone = customer.phone
            form.email = customer.email
            form.editing_id = customer.id
            form.phone_invalid = bool(customer.phone) and not is_valid_phone(customer.phone)
        self._notify()

    def start_edit_by_id(self, customer_id: str) -> bool:
        customer = self.get(customer_id)
        if customer is None:
            logger.debug("start_edit ignored: unknown customer %s", customer_id)
            return False
        self.start_edit(customer)
        return True

    def clear(self) -> None:
        """Reset the form to an empty Create-mode draft. Leaves `saving` alone."""
        with self._lock:
            self._reset_form_locked()
        self._notify()

    def _reset_form_locked(self) -> None:
        form = self._form
        form.name = ""
        form.phone = ""
        form.email = ""
        form.editing_id = None
        form.phone_invalid = False

    # -------- remote intents --------

    def submit(self) -> bool:
        """
        Purpose: Validate, then create or update the customer in the form.
        Outputs: True if a write was issued; False if blocked by phone validation.
        Side effects: saving=True, display timer started, gateway.upsert called.
                      On success: refresh() then clear(). On failure: error surfaced, form kept.
        """
        with self._lock:
            form = self._form
            if form.phone_invalid:
                return False
            try:
                require_valid_phone(form.phone)
            except ValidationError:
                form.phone_invalid = True
                blocked = True
            else:
                blocked = False
                self._save_token += 1
                token = self._save_token
                form.saving = True
                args = (form.editing_id, form.name, form.phone, form.email)
                previous_timer, self._save_timer = self._save_timer, None
        if blocked:
            self._notify()
            return False

        if previous_timer is not None:
            previous_timer.cancel()
        self._start_saving_timer(token)
        self._notify()

        future = self._gateway.upsert(*args)
        future.add_done_callback(lambda f: self._on_upsert_done(f, token))
        return True

    def delete_customer(self, customer_id: str) -> Future:
        future = self._gateway.delete(customer_id)
        future.add_done_callback(self._on_delete_done)
        return future

    def refresh(self) -> Future:
        future = self._gateway.list_all()
        future.add_done_callback(self._on_list_done)
        return future

    # -------- completions (may run on gateway worker threads) --------

    def _on_upsert_done(self, future: Future, token: int) -> None:
        error = _store_error(future, "upsert")
        if error is None:
            self.refresh()
            with self._lock:
                self._reset_form_locked()
        else:
            self._surface("upsert", error)
        with self._lock:
            if token == self._save_token:
                self._form.saving = False
                timer, self._save_timer = self._save_timer, None
            else:
                timer = None
        if timer is not None:
            timer.cancel()
        self._notify()

    def _on_delete_done(self, future: Future) -> None:
        error = _store_error(future, "delete")
        if error is not None:
            self._surface("delete", error)
            return
        self.refresh()

    def _on_list_done(self, future: Future) -> None:
        error = _store_error(future, "list_all")
        if error is not None:
            self._surface("list_all", error)
            return
        customers = _unique_by_id(future.result())
        with self._lock:
            self._customers = customers
        self._notify()

    # -------- saving indicator --------

    def _start_saving_timer(self, token: int) -> None:
        if self._saving_timeout is None:
            return
        timer = self._timer_factory(self._saving_timeout, lambda: self._on_saving_window_elapsed(token))
        with self._lock:
            if token != self._save_token:
                return
            self._save_timer = timer
        timer.start()

    def _on_saving_window_elapsed(self, token: int) -> None:
        with self._lock:
            if token != self._save_token or not self._form.saving:
                return
            self._form.saving = False
            self._save_timer = None
        self._notify()

    # -------- notification --------

    def _surface(self, operation: str, error: StoreError) -> None:
        with self._lock:
            listeners = list(self._error_listeners)
        for listener in listeners:
            try:
                listener(operation, error)
            except Exception:
                logger.exception("Error listener failed for %s", operation)

    def _notify(self) -> None:
        with self._lock:
            state = self._snapshot_locked()
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")
