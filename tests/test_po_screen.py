import time

import pytest

from procurement_client.events import PO_STATUS_UPDATED, StatusChanged
from procurement_client.workflows.editing import Banner, WorkflowError
from procurement_client.workflows.po_screen import (
    BackorderedReturnedScreen,
    RaisedPurchaseOrdersScreen,
)

from conftest import po_row

ALL_POS = "/purchase-orders//purchase-orders/"


def _rows():
    return [
        po_row("PO-1", 1, expected_delivery_date="2025-11-29"),
        po_row("PO-2", 2, expected_delivery_date="2025-11-30T08:00:00"),
        po_row("PO-3", 3, expected_delivery_date="2025-12-01"),
    ]


@pytest.fixture
def screen(backend, client, today):
    backend.on("GET", ALL_POS, json={"data": _rows()})
    screen = RaisedPurchaseOrdersScreen(client, today=today, banner=Banner(lifetime=3), debounce_wait=0)
    yield screen
    screen.dispose()


def test_load_requires_token(backend, make_client, today):
    screen = RaisedPurchaseOrdersScreen(make_client(token=None), today=today)
    assert screen.load() is False
    assert screen.error == "No authentication token found. Please log in."
    assert backend.requests == []


def test_load_requires_purchase_head(backend, make_client, today):
    screen = RaisedPurchaseOrdersScreen(make_client(role="inventory_head"), today=today)
    assert screen.load() is False
    assert screen.error == 'Unauthorized: Only users with the "purchase_head" role can access this page.'


def test_load_failure_sets_generic_message(backend, client, today):
    backend.on("GET", ALL_POS, json={"error": "down"}, status=500)
    screen = RaisedPurchaseOrdersScreen(client, today=today)
    assert screen.load() is False
    assert screen.error == "Failed to fetch purchase orders. Please try again."


def test_load_groups_and_sorts_descending(screen):
    assert screen.load()
    assert [po.po_number for po in screen.view.rows] == ["PO-3", "PO-2", "PO-1"]


def test_due_today_and_labels(screen):
    screen.load()
    assert [po.po_number for po in screen.due_today()] == ["PO-2"]
    labels = {po.po_number: screen.delivery_status(po).label for po in screen.purchase_orders}
    assert labels == {"PO-1": "Delayed", "PO-2": "Expected Delivery Today", "PO-3": "Due Soon"}


def test_unlock_gated_by_delivery_label(screen):
    screen.load()
    by_number = {po.po_number: po for po in screen.purchase_orders}
    assert screen.toggle_unlock(by_number["PO-1"]) is True
    with pytest.raises(WorkflowError):
        screen.toggle_unlock(by_number["PO-3"])
    assert screen.toggle_unlock(by_number["PO-1"]) is False


def test_edit_flow_updates_view_with_server_values(backend, screen):
    backend.on("PUT", "/purchase-orders/update", json={"amount": 1000, "gst_amount": 180})
    screen.load()
    po = next(po for po in screen.purchase_orders if po.po_number == "PO-1")
    screen.toggle_unlock(po)
    screen.open(po)
    row = screen.view.rows[0]

    screen.begin_edit(row)
    screen.set_quantity(row, 10)
    screen.set_delivery_date(row, "2025-12-02")
    screen.submit_edit(row)
    saved = screen.confirm_edit(row)

    assert len(backend.calls("PUT", "/purchase-orders/update")) == 1
    assert saved.amount == 1000.0
    assert screen.view.rows[0].updated_requested_quantity == 10
    assert screen.view.rows[0].expected_delivery_date == "2025-12-02"
    assert po.components[0].gst_amount == 180.0
    assert screen.banner == "Purchase order updated successfully!"
    assert screen.error is None


def test_failed_edit_sets_error_and_keeps_buffer(backend, screen):
    backend.on("PUT", "/purchase-orders/update", json={"error": "Invalid quantity"}, status=400)
    screen.load()
    po = next(po for po in screen.purchase_orders if po.po_number == "PO-2")
    screen.toggle_unlock(po)
    row = po.components[0]
    screen.begin_edit(row)
    screen.set_quantity(row, 4)
    screen.submit_edit(row)

    assert screen.confirm_edit(row) is None
    assert screen.error == "Failed to update purchase order: Invalid quantity"
    assert screen.editor.buffer_of(row).updated_requested_quantity == 4


def test_search_filters_rows(screen):
    screen.load()
    screen.search_text("part 3")
    assert [po.po_number for po in screen.view.rows] == ["PO-3"]


def test_dispose_cancels_pending_search(backend, client, today):
    backend.on("GET", ALL_POS, json={"data": _rows()})
    screen = RaisedPurchaseOrdersScreen(client, today=today, debounce_wait=0.05)
    screen.load()
    screen.search_text("PO-1")
    screen.dispose()
    time.sleep(0.2)
    assert screen.view.filters.text == ""
    assert not screen.search.pending


def test_status_event_triggers_reload(backend, screen):
    screen.load()
    screen.client.bus.publish(StatusChanged(PO_STATUS_UPDATED, key="PO-1", status="x"))
    assert len(backend.calls("GET", ALL_POS)) == 2


def test_dispose_closes_client_and_discards(backend, screen):
    screen.load()
    screen.dispose()
    assert screen.client.closed
    assert screen.load() is False
    assert screen.error is None
    assert len(backend.calls("GET", ALL_POS)) == 1


def test_backordered_screen_edits_date_only(backend, client, today):
    backend.on(
        "GET",
        "/purchase-orders/backordered-returned",
        json={"data": [po_row(
            "PO-9", 4,
            po_status="Warehouse In, Backordered (1) Returned (1)",
            backorder_sequence="BO-1",
            return_sequence="RET-2",
            received_quantity=2,
        )]},
    )
    backend.on("PUT", "/purchase-orders/backorder-items/update", json={"message": "updated"})
    screen = BackorderedReturnedScreen(client, today=today, banner=Banner(lifetime=3))
    assert screen.load()

    po = screen.purchase_orders[0]
    assert screen.sequence_label(po) == "BO-1 / RET-2"
    row = po.components[0]
    assert screen.pending_quantity(row) == 3

    screen.toggle_unlock(po)
    screen.begin_edit(row)
    with pytest.raises(WorkflowError):
        screen.set_quantity(row, 9)
    screen.set_delivery_date(row, "2025-12-20")
    screen.submit_edit(row)
    saved = screen.confirm_edit(row)

    assert saved.expected_delivery_date == "2025-12-20"
    [request] = backend.calls("PUT", "/purchase-orders/backorder-items/update")
    assert backend.body(request)["expected_delivery_date"] == "2025-12-20"
    screen.dispose()


def test_sequence_label_single_kind():
    from procurement_client.models.purchase import Component, PurchaseOrder

    po = PurchaseOrder(
        po_number="PO-1",
        po_status="Returned",
        components=[Component(po_number="PO-1", return_sequence="RET-1")],
    )
    assert BackorderedReturnedScreen.sequence_label(po) == "RET-1"
    po.po_status = "Delivered"
    assert BackorderedReturnedScreen.sequence_label(po) == "-"
