"""
Design (config.py)
- Purpose: Centralize constants and configuration.
- Inputs: Environment variables for deployment values (collection, project, backend, log level).
- Outputs: Constants (names, timeouts, limits, icon file name).
- Side effects: Reads os.environ once at import.
- Thread-safety: N/A (read-only constants).
"""

import os

# Remote document store
COLLECTION_NAME = os.environ.get("CUSTOMERBOOK_COLLECTION", "Customers")
FIRESTORE_PROJECT = os.environ.get("CUSTOMERBOOK_PROJECT") or None  # None = application-default project
BACKEND = os.environ.get("CUSTOMERBOOK_BACKEND", "firestore").strip().lower()  # "firestore" | "memory"

STORE_TIMEOUT_SEC = 15.0  # per-call timeout handed to the Firestore client
GATEWAY_WORKERS = 2       # worker threads running remote calls

# Form validation
PHONE_MIN_LENGTH = 8

# "Saving..." indicator is force-cleared after this many seconds (display only)
SAVING_DISPLAY_SEC = 3.0

# Maximum number of log lines kept in the Logs panel (oldest trimmed)
LOG_MAX_LINES = 1000
LOG_LEVEL = os.environ.get("CUSTOMERBOOK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

NOTIFY_TIMEOUT_SEC = 5

ICON_FILE = "logo.ico"  # Expected at customerbook/icons/logo.ico (optional)

WINDOW_TITLE = "Customer Management"
