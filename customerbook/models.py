"""
Design (models.py)
- Purpose: Define simple, typed data structures for domain entities (Customer) and form/view state.
- Inputs: Field values (str) or raw store documents (dict).
- Outputs: Dataclass instances.
- Side effects: None.
- Thread-safety: Dataclasses are plain containers; the controller protects concurrent access.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

DOCUMENT_FIELDS = ("name", "phone", "email")


@dataclass(frozen=True)
class Customer:
    """
    Design (Customer)
    - Purpose: Represents a single customer entry in the list.
    - Fields:
        id: store-assigned document id ('' until first persisted).
        name: free text.
        phone: decimal digits only (validated client-side before submission).
        email: free text, not validated.
    """
    id: str
    name: str = ""
    phone: str = ""
    email: str = ""

    @classmethod
    def from_document(cls, doc_id: str, data: Optional[Mapping[str, Any]]) -> "Customer":
        """Build a Customer from a store document; missing or null fields become ''."""
        data = data or {}
        values = {}
        for key in DOCUMENT_FIELDS:
            raw = data.get(key)
            values[key] = "" if raw is None else str(raw)
        return cls(id=str(doc_id), **values)

    def to_document(self) -> Dict[str, str]:
        return document_for(self.name, self.phone, self.email)


def document_for(name: str, phone: str, email: str) -> Dict[str, str]:
    """The exact payload written to the store (full replace on update)."""
    return {"name": name, "phone": phone, "email": email}


@dataclass
class FormState:
    """
    Design (FormState)
    - Purpose: The single editable draft plus mode/validation/saving flags.
    - Fields:
        name, phone, email: text mirroring user input.
        editing_id: None = Create mode; otherwise the id of the customer being updated.
        phone_invalid: derived each time phone changes.
        saving: True from submission start until the write completes or the display window ends.
    """
    name: str = ""
    phone: str = ""
    email: str = ""
    editing_id: Optional[str] = None
    phone_invalid: bool = False
    saving: bool = False


@dataclass(frozen=True)
class ViewState:
    """Read-only snapshot handed to listeners and the presentation layer."""
    name: str = ""
    phone: str = ""
    email: str = ""
    editing_id: Optional[str] = None
    phone_invalid: bool = False
    saving: bool = False
    customers: Tuple[Customer, ...] = field(default_factory=tuple)

    @property
    def record_count(self) -> int:
        return len(self.customers)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    @property
    def mode(self) -> str:
        return "edit" if self.editing_id is not None else "create"

    @property
    def submit_label(self) -> str:
        return "Update" if self.editing_id is not None else "Create"
