"""
Design (utils.py)
- Purpose: Reusable helpers: icon path detection (PyInstaller), phone validation,
           and small display formatters used by the UI.
- Inputs: Various helper parameters (phone text, counts, customers).
- Outputs: Helper results (bools, strings, paths).
- Side effects: None.
- Thread-safety: Stateless; safe to call from any thread.
"""

import os
import sys

from .config import PHONE_MIN_LENGTH
from .errors import ValidationError
from .models import Customer

_DIGITS = frozenset("0123456789")


def get_icon_path(filename: str) -> str:
    """
    Purpose: Resolve icon path for both dev (script) and PyInstaller (frozen) runs.
    Inputs: filename (e.g., "logo.ico")
    Outputs: Absolute/relative path usable with Tk.iconbitmap.
    """
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        return os.path.join(sys._MEIPASS, filename)  # type: ignore[attr-defined]
    here = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(here, "icons", filename)


def is_digits(text: str) -> bool:
    """
    Purpose: True if every character is an ASCII decimal digit.
    Note: the empty string passes (a cleared field is accepted while typing).
    """
    return all(ch in _DIGITS for ch in text)


def is_valid_phone(text: str) -> bool:
    """Valid iff non-empty, ASCII digits only, and at least PHONE_MIN_LENGTH long."""
    return bool(text) and is_digits(text) and len(text) >= PHONE_MIN_LENGTH


def require_valid_phone(text: str) -> str:
    """Return text unchanged or raise ValidationError."""
    if not is_valid_phone(text):
        raise ValidationError("phone", text)
    return text


def format_count(count: int) -> str:
    return f"Total customers: {count}"


def format_customer_row(customer: Customer) -> tuple[str, str, str]:
    """Values for one Treeview row: (name, phone, email)."""
    return (customer.name, customer.phone, customer.email or "—")
