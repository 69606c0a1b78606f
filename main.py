import logging
import tkinter as tk

from customerbook.config import BACKEND, LOG_DATEFMT, LOG_FORMAT, LOG_LEVEL
from customerbook.controller import CustomerController
from customerbook.gateway import CustomerGateway, FirestoreGateway, InMemoryGateway
from customerbook.ui import AppUI

logger = logging.getLogger("customerbook.main")


def build_gateway(backend: str = BACKEND) -> CustomerGateway:
    """Create the gateway once at process start ("firestore" or "memory")."""
    if backend == "memory":
        logger.info("Using in-memory customer store")
        return InMemoryGateway()
    if backend != "firestore":
        raise ValueError(f"Unknown backend: {backend!r}")
    return FirestoreGateway()


def main() -> None:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    gateway = build_gateway()
    controller = CustomerController(gateway)

    root = tk.Tk()
    AppUI(root, controller)
    controller.refresh()

    try:
        root.mainloop()
    finally:
        gateway.close()


if __name__ == "__main__":
    main()
