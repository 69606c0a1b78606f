from customerbook.models import Customer, FormState, ViewState, document_for


def test_from_document_defaults_missing_fields():
    customer = Customer.from_document("abc", {"name": "Ana"})
    assert customer == Customer(id="abc", name="Ana", phone="", email="")


def test_from_document_handles_none_and_null_values():
    assert Customer.from_document("x", None) == Customer(id="x")
    assert Customer.from_document("x", {"phone": None, "email": "e"}).phone == ""


def test_to_document_is_exact_payload():
    customer = Customer("7", "Bob", "99999999", "b@x.com")
    assert customer.to_document() == {"name": "Bob", "phone": "99999999", "email": "b@x.com"}
    assert document_for("a", "b", "c") == {"name": "a", "phone": "b", "email": "c"}


def test_form_state_starts_empty_in_create_mode():
    form = FormState()
    assert (form.name, form.phone, form.email) == ("", "", "")
    assert form.editing_id is None
    assert not form.phone_invalid
    assert not form.saving


def test_view_state_derived_values():
    empty = ViewState()
    assert empty.record_count == 0
    assert empty.is_empty
    assert empty.submit_label == "Create"
    assert empty.mode == "create"

    editing = ViewState(editing_id="7", customers=(Customer("7"), Customer("8")))
    assert editing.record_count == 2
    assert not editing.is_empty
    assert editing.submit_label == "Update"
    assert editing.mode == "edit"
