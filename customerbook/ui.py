"""
Design (ui.py)
- Purpose: Build and manage the Tkinter UI (form, Treeview, buttons, logs panel).
- Inputs: CustomerController (state + intents).
- Outputs: None (renders controller state, forwards user intents).
- Side effects: Creates windows; shows desktop notifications (plyer) for store failures.
- Thread-safety: UI code runs on main thread; controller notifications may arrive from gateway
                 worker threads and are rescheduled with Tk.after().
"""

import logging
import tkinter as tk
from tkinter import ttk, messagebox

from plyer import notification

from .config import ICON_FILE, LOG_DATEFMT, LOG_FORMAT, LOG_MAX_LINES, NOTIFY_TIMEOUT_SEC, WINDOW_TITLE
from .controller import CustomerController
from .errors import StoreError
from .models import ViewState
from .utils import format_count, format_customer_row, get_icon_path

logger = logging.getLogger(__name__)

_FAILURE_MESSAGES = {
    "list_all": "Could not load customers.",
    "upsert": "Could not save customer.",
    "delete": "Could not delete customer.",
}


class TkLogHandler(logging.Handler):
    """Forwards log records to AppUI's Logs panel on the Tk main thread."""

    def __init__(self, ui: "AppUI") -> None:
        super().__init__()
        self.ui = ui
        self.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record) + "\n"
            self.ui.root.after(0, lambda: self.ui._append_log(line))
        except Exception:
            self.handleError(record)


class AppUI:
    """
    Design (AppUI)
    - Purpose: Encapsulate all UI creation and behavior.
    - Public attributes:
        enable_notifications (tk.BooleanVar): toggles desktop notifications on store failures
        show_logs (tk.BooleanVar): toggles visibility of the logs panel
    - Public methods:
        schedule_refresh(): thread-safe way to repaint from a controller notification
        on_store_error(): thread-safe adapter reporting a StoreError to the user
    """

    def __init__(self, root: tk.Tk, controller: CustomerController):
        self.root = root
        self.controller = controller

        # UI state variables
        self.enable_notifications = tk.BooleanVar(value=True)
        self.show_logs = tk.BooleanVar(value=False)
        self.v_name = tk.StringVar()
        self.v_phone = tk.StringVar()
        self.v_email = tk.StringVar()
        self._painting = False

        # Window
        self.root.title(WINDOW_TITLE)
        try:
            self.root.iconbitmap(get_icon_path(ICON_FILE))
        except tk.TclError:
            logger.debug("Icon %s not found; using default", ICON_FILE)
        self.root.rowconfigure(0, weight=1)
        self.root.columnconfigure(0, weight=1)
        self.root.configure(bg="#1e1e1e")

        # Paned window: top = content (form, tree, buttons), bottom = logs (when shown)
        self.paned = ttk.PanedWindow(self.root, orient=tk.VERTICAL)
        self.paned.grid(row=0, column=0, sticky="nsew")

        content_frame = tk.Frame(self.paned, bg="#1e1e1e")
        content_frame.rowconfigure(5, weight=1)
        content_frame.columnconfigure(0, weight=1)
        self.paned.add(content_frame, weight=1)

        self.bottom_frame = tk.Frame(self.paned, bg="#1e1e1e")
        self.logs_box = tk.Text(self.bottom_frame, height=6, bg="#1b1b1b", fg="#dddddd", wrap="none")
        self.logs_box.configure(state="disabled")
        self.logs_box.pack(fill=tk.BOTH, expand=True, padx=10, pady=(0, 6))
        self.logs_box.pack_forget()  # hidden by default
        self.paned.add(self.bottom_frame, weight=0)

        def _keep_sash_collapsed(_event=None):
            """When Logs is unchecked, keep sash at bottom so window can resize down."""
            if not self.show_logs.get():
                self.paned.update_idletasks()
                total = self.paned.winfo_height()
                if total > 0:
                    self.paned.sashpos(0, total)

        self.paned.bind("<Configure>", _keep_sash_collapsed)

        # Style
        style = ttk.Style(self.root)
        style.theme_use("default")
        style.configure(
            "Treeview",
            background="#2b2b2b",
            foreground="#f0f0f0",
            fieldbackground="#2b2b2b",
            rowheight=24,
            font=("Segoe UI", 10),
        )
        style.configure(
            "Treeview.Heading",
            background="#1e1e1e",
            foreground="#ffffff",
            font=("Segoe UI", 10, "bold"),
        )
        style.map("Treeview", background=[('selected', '#444')], foreground=[])

        # Header: customer count
        self.count_label = tk.Label(content_frame, fg="#7CFC00", bg="#1e1e1e", font=("Segoe UI", 13, "bold"))
        self.count_label.grid(row=0, column=0, pady=(10, 5))

        # Form
        form = tk.Frame(content_frame, bg="#1e1e1e")
        form.grid(row=1, column=0, sticky="ew", padx=10)
        form.columnconfigure(1, weight=1)

        tk.Label(form, text="Name", fg="white", bg="#1e1e1e").grid(row=0, column=0, sticky="e", padx=5, pady=5)
        tk.Entry(form, textvariable=self.v_name).grid(row=0, column=1, sticky="ew", padx=5, pady=5)

        tk.Label(form, text="Phone", fg="white", bg="#1e1e1e").grid(row=1, column=0, sticky="e", padx=5, pady=5)
        vcmd = (self.root.register(self._validate_phone), "%P")
        tk.Entry(form, textvariable=self.v_phone, validate="key", validatecommand=vcmd).grid(
            row=1, column=1, sticky="ew", padx=5, pady=5
        )
        self.phone_error = tk.Label(form, text="Invalid phone number", fg="#FF6A6A", bg="#1e1e1e", font=("Segoe UI", 8))
        self.phone_error.grid(row=2, column=1, sticky="w", padx=5)
        self.phone_error.grid_remove()

        tk.Label(form, text="Email", fg="white", bg="#1e1e1e").grid(row=3, column=0, sticky="e", padx=5, pady=5)
        tk.Entry(form, textvariable=self.v_email).grid(row=3, column=1, sticky="ew", padx=5, pady=5)

        self.v_name.trace_add("write", lambda *_: self._forward(self.controller.change_name, self.v_name))
        self.v_email.trace_add("write", lambda *_: self._forward(self.controller.change_email, self.v_email))

        # Submit / Clear
        form_buttons = tk.Frame(content_frame, bg="#1e1e1e")
        form_buttons.grid(row=2, column=0, sticky="ew", padx=10, pady=(5, 5))
        self.submit_button = ttk.Button(form_buttons, text="Create", command=self.controller.submit)
        self.submit_button.pack(side=tk.LEFT, padx=5)
        ttk.Button(form_buttons, text="Clear", command=self.controller.clear).pack(side=tk.LEFT, padx=5)

        self.saving_label = tk.Label(content_frame, text="Saving...", fg="#FFA500", bg="#1e1e1e")
        self.saving_label.grid(row=3, column=0, pady=(0, 5))
        self.saving_label.grid_remove()

        self.empty_label = tk.Label(content_frame, text="No customers registered.", fg="#5E5D5D", bg="#1e1e1e",
                                    font=("Segoe UI", 11))
        self.empty_label.grid(row=4, column=0, pady=10)

        # Treeview
        self.columns = ("name", "phone", "email")
        self.tree = ttk.Treeview(content_frame, columns=self.columns, show="headings", selectmode="browse")
        self.tree.grid(row=5, column=0, sticky="nsew", padx=10, pady=(0, 5))
        headers = {"name": "Name", "phone": "Phone", "email": "Email"}
        for col in self.columns:
            self.tree.heading(col, text=headers[col])
        self.tree.bind("<Double-1>", self.on_double_click)

        # Row actions & toggles
        button_frame = tk.Frame(content_frame, bg="#1e1e1e")
        button_frame.grid(row=6, column=0, sticky="ew", padx=10, pady=(0, 10))

        ttk.Button(button_frame, text="Edit Customer", command=self.edit_customer).pack(side=tk.LEFT, padx=5)
        ttk.Button(button_frame, text="Delete Customer", command=self.delete_customer).pack(side=tk.LEFT, padx=5)
        ttk.Button(button_frame, text="Reload", command=self.controller.refresh).pack(side=tk.LEFT, padx=5)

        tk.Checkbutton(
            button_frame,
            text="Enable Notifications",
            variable=self.enable_notifications,
            fg="white",
            bg="#1e1e1e",
            selectcolor="#2b2b2b",
            activebackground="#1e1e1e",
            activeforeground="white",
        ).pack(side=tk.LEFT, padx=5)

        tk.Checkbutton(
            button_frame,
            text="Show Logs",
            variable=self.show_logs,
            fg="white",
            bg="#1e1e1e",
            selectcolor="#2b2b2b",
            command=self.toggle_logs,
        ).pack(side=tk.LEFT, padx=5)

        # Wire controller -> UI
        self.log_handler = TkLogHandler(self)
        logging.getLogger("customerbook").addHandler(self.log_handler)
        self.controller.add_listener(lambda _state: self.schedule_refresh())
        self.controller.add_error_listener(self.on_store_error)

        # Initial paint
        self.refresh_ui()

    # ---------- Public API for controller callbacks ----------

    def schedule_refresh(self) -> None:
        """
        Purpose: Allow controller notifications (any thread) to request a repaint safely.
        Side effects: Schedules refresh_ui on the main thread via Tk.after().
        """
        self.root.after(0, self.refresh_ui)

    def on_store_error(self, operation: str, error: StoreError) -> None:
        """
        Purpose: Report a failed gateway call (log line + optional desktop notification).
        Thread-safety: Reschedules the notification on the main thread.
        """
        message = _FAILURE_MESSAGES.get(operation, "Store operation failed.")
        self.root.after(0, lambda: self._notify_failure(message, error))

    # ---------- UI callbacks & utilities ----------

    def refresh_ui(self) -> None:
        """
        Purpose: Repaint form, labels and Tree rows from the controller snapshot.
        Thread-safety: Must run on main thread (use schedule_refresh from other threads).
        """
        state: ViewState = self.controller.snapshot()

        self._painting = True
        try:
            for var, value in ((self.v_name, state.name), (self.v_phone, state.phone), (self.v_email, state.email)):
                if var.get() != value:
                    var.set(value)
        finally:
            self._painting = False

        self.count_label.configure(text=format_count(state.record_count))
        self.submit_button.configure(text=state.submit_label)
        if state.phone_invalid:
            self.phone_error.grid()
        else:
            self.phone_error.grid_remove()
        if state.saving:
            self.saving_label.grid()
        else:
            self.saving_label.grid_remove()
        if state.is_empty:
            self.empty_label.grid()
        else:
            self.empty_label.grid_remove()

        selected = self._selected_id()
        self.tree.delete(*self.tree.get_children())
        for customer in state.customers:
            self.tree.insert("", "end", iid=customer.id, values=format_customer_row(customer))
        if selected and self.tree.exists(selected):
            self.tree.selection_set(selected)

    def toggle_logs(self) -> None:
        """Show logs in bottom pane. Resize pane to show/hide."""
        if self.show_logs.get():
            self.paned.pane(self.bottom_frame, weight=1)
            self.logs_box.pack(fill=tk.BOTH, expand=True, padx=10, pady=(0, 6))
            self.paned.update_idletasks()
            total = self.paned.winfo_height()
            if total > 0:
                self.paned.sashpos(0, int(total * 0.8))
        else:
            self.logs_box.pack_forget()
            self.paned.pane(self.bottom_frame, weight=0)
            self.paned.update_idletasks()
            total = self.paned.winfo_height()
            if total > 0:
                self.paned.sashpos(0, total)

    def on_double_click(self, event) -> None:
        """Double-clicking a row loads it into the form."""
        row_id = self.tree.identify_row(event.y)
        if row_id:
            self.controller.start_edit_by_id(row_id)

    def edit_customer(self) -> None:
        customer_id = self._selected_id()
        if not customer_id:
            messagebox.showinfo("Edit Customer", "Select a customer to edit.")
            return
        if not self.controller.start_edit_by_id(customer_id):
            messagebox.showerror("Edit Customer", "Customer not found in the list.")

    def delete_customer(self) -> None:
        customer_id = self._selected_id()
        if not customer_id:
            messagebox.showinfo("Delete Customer", "Select a customer to delete.")
            return
        self.controller.delete_customer(customer_id)

    def _selected_id(self) -> str | None:
        selected = self.tree.selection()
        return selected[0] if selected else None

    def _validate_phone(self, proposed: str) -> bool:
        """Tk validatecommand: reject keystrokes that would put a non-digit in the phone field."""
        if self._painting:
            return True
        return self.controller.change_phone(proposed)

    def _forward(self, intent, var: tk.StringVar) -> None:
        if not self._painting:
            intent(var.get())

    def _notify_failure(self, message: str, error: StoreError) -> None:
        self._append_log(f"{message} ({error})\n")
        if not self.enable_notifications.get():
            return
        try:
            notification.notify(title=WINDOW_TITLE, message=message, timeout=NOTIFY_TIMEOUT_SEC)
        except Exception:
            logger.warning("Desktop notification unavailable", exc_info=True)

    # ---------- internal helper for Logs ----------

    def _append_log(self, text: str) -> None:
        """
        Purpose: Append one line to the Logs panel and trim to LOG_MAX_LINES.
        Thread-safety: Main thread only (called via after()).
        """
        self.logs_box.configure(state="normal")
        self.logs_box.insert("end", text)
        self.logs_box.see("end")
        total_lines = int(self.logs_box.index("end-1c").split(".")[0])
        if total_lines > LOG_MAX_LINES:
            remove = total_lines - LOG_MAX_LINES
            self.logs_box.delete("1.0", f"{remove + 1}.0")
        self.logs_box.configure(state="disabled")
