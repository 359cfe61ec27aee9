import logging

import pytest

from procurement_client.client import ApiError, PreconditionError
from procurement_client.events import BACKORDER_STATUS_UPDATED, PO_STATUS_UPDATED
from procurement_client.models.purchase import ReceivingLine
from procurement_client.services.purchase_orders import (
    QC_PENDING_STATUS,
    fetch_all_purchase_orders,
    fetch_backordered_returned_pos,
    fetch_purchase_order_components,
    group_purchase_orders,
    group_receiving_lines,
    update_backorder_item,
    update_purchase_order,
    update_receiving_status,
)

from conftest import po_row

ALL_POS = "/purchase-orders//purchase-orders/"


def test_fetch_all_accepts_wrapped_and_bare_arrays(backend, client):
    rows = [po_row("PO-1", 1), po_row("PO-1", 2), po_row("PO-2", 3)]
    backend.on("GET", ALL_POS, json={"data": rows})
    wrapped = fetch_all_purchase_orders(client)

    backend.on("GET", ALL_POS, json=rows)
    bare = fetch_all_purchase_orders(client)

    assert [c.component_id for c in wrapped] == [c.component_id for c in bare] == [1, 2, 3]
    assert wrapped[0].updated_requested_quantity == 5
    assert wrapped[0].rate_per_unit == 100.0


def test_fetch_all_drops_rows_without_po_number_and_fills_defaults(backend, client):
    backend.on("GET", ALL_POS, json=[po_row("PO-1", 1, vendor_name=None, mpn=""), {"component_id": 9}])
    [component] = fetch_all_purchase_orders(client)
    assert component.vendor_name == "-"
    assert component.mpn == "N/A"


def test_fetch_all_warns_on_duplicate_po_numbers(backend, client, caplog):
    backend.on("GET", ALL_POS, json=[po_row("PO-1", 1), po_row("PO-1", 2)])
    with caplog.at_level(logging.WARNING):
        fetch_all_purchase_orders(client)
    assert "Duplicate PO numbers detected" in caplog.text


def test_fetch_all_rejects_unexpected_shape(backend, client):
    backend.on("GET", ALL_POS, json={"data": "nope"})
    with pytest.raises(ApiError, match="Unexpected response structure"):
        fetch_all_purchase_orders(client)


def test_group_purchase_orders_keeps_first_seen_order(backend, client):
    backend.on("GET", ALL_POS, json=[po_row("PO-2", 1), po_row("PO-1", 2), po_row("PO-2", 3)])
    orders = group_purchase_orders(fetch_all_purchase_orders(client))
    assert [po.po_number for po in orders] == ["PO-2", "PO-1"]
    assert [c.component_id for c in orders[0].components] == [1, 3]


def test_update_sends_one_request_and_returns_server_totals(backend, client, today):
    backend.on("PUT", "/purchase-orders/update", json={"data": {"amount": "1000", "gst_amount": "180"}})
    totals = update_purchase_order(client, "PO-1", 11, "2025-12-05T00:00:00", 10, today=today)

    [request] = backend.calls("PUT", "/purchase-orders/update")
    assert backend.body(request) == {
        "po_number": "PO-1",
        "component_id": 11,
        "expected_delivery_date": "2025-12-05",
        "updated_requested_quantity": 10,
    }
    assert totals["amount"] == 1000.0
    assert totals["gst_amount"] == 180.0


@pytest.mark.parametrize(
    "args,message",
    [
        (("", 11, "2025-12-05", 10), "Missing required fields"),
        (("PO-1", 11, None, 10), "Missing required fields"),
        (("PO-1", 11, "2025-11-01", 10), "cannot be in the past"),
        (("PO-1", 11, "2025-12-05", 0), "positive number"),
        (("PO-1", 11, "2025-12-05", "x"), "positive number"),
    ],
)
def test_update_preconditions_send_nothing(backend, client, today, args, message):
    with pytest.raises(PreconditionError, match=message):
        update_purchase_order(client, *args, today=today)
    assert backend.requests == []


def test_backordered_returned_warns_on_unexpected_status(backend, client, caplog):
    backend.on(
        "GET",
        "/purchase-orders/backordered-returned",
        json={"data": [
            po_row("PO-1", 1, po_status="Warehouse In, Backordered (2)", backorder_sequence="BO-1"),
            po_row("PO-2", 2, po_status="Warehouse In, Backordered (1) Returned (1)"),
            po_row("PO-3", 3, po_status="Returned"),
            po_row("PO-4", 4, po_status="Returned Somewhere"),
        ]},
    )
    with caplog.at_level(logging.WARNING):
        rows = fetch_backordered_returned_pos(client)
    assert len(rows) == 4
    assert rows[0].backorder_sequence == "BO-1"
    assert "Unexpected status for PO PO-4" in caplog.text
    assert "PO-1" not in caplog.text


def test_update_backorder_item_is_date_only(backend, client, today):
    backend.on("PUT", "/purchase-orders/backorder-items/update", json={"message": "ok"})
    update_backorder_item(client, "PO-1", 3, "2025-12-24", today=today)
    [request] = backend.requests
    assert backend.body(request) == {"po_number": "PO-1", "component_id": 3, "expected_delivery_date": "2025-12-24"}


def test_components_view_requires_role(backend, make_client):
    client = make_client(role="quality_employee")
    with pytest.raises(PreconditionError, match="Unauthorized"):
        fetch_purchase_order_components(client)
    assert backend.requests == []


def _line(po_number, mpn, status="Material Delivery Pending", **extra):
    return ReceivingLine(po_number=po_number, mpn=mpn, status=status, **extra)


def test_group_receiving_lines():
    lines = [
        _line("PO-1", "A"),
        _line("PO-1", "A"),
        _line("PO-3", "B", status=QC_PENDING_STATUS),
        _line("po-2", "C", status="Backorder material delivery pending", backorder_sequence="BO-7"),
    ]
    shaped = group_receiving_lines(lines)
    assert [o.po_number for o in shaped["orders"]] == ["po-2", "PO-1"]
    assert [(c.po_number, c.mpn) for c in shaped["components"]] == [("PO-1", "A"), ("po-2", "C")]
    assert shaped["backorder_sequences"] == [{"po_number": "po-2", "backorder_sequence": "BO-7"}]
    assert shaped["columns"]["backorder_sequence"] is True
    assert shaped["columns"]["return_sequence"] is False


def test_receiving_status_routes_to_po_endpoint(backend, make_client):
    client = make_client(role="inventory_head")
    events = []
    client.bus.subscribe("purchase_order.*", events.append)
    backend.on("POST", "/nc-requests/update-po-status", json={"message": "ok"})

    update_receiving_status(client, _line("PO-1", "A"), QC_PENDING_STATUS)

    [request] = backend.requests
    assert backend.body(request) == {"po_number": "PO-1", "mpn": "A", "status": QC_PENDING_STATUS}
    assert [e.topic for e in events] == [PO_STATUS_UPDATED]


def test_receiving_status_routes_backorders(backend, make_client):
    client = make_client(role="inventory_head")
    events = []
    client.bus.subscribe("*", events.append)
    backend.on("POST", "/nc-requests/update-bo-status", json={"message": "ok"})

    line = _line("PO-1", "A", status="Backorder material delivery pending", backorder_sequence="BO-2")
    update_receiving_status(client, line, QC_PENDING_STATUS)

    assert backend.body(backend.requests[0])["backorder_sequence"] == "BO-2"
    assert events[0].topic == BACKORDER_STATUS_UPDATED


def test_receiving_status_rejects_other_states(backend, make_client):
    client = make_client(role="inventory_head")
    with pytest.raises(PreconditionError, match="Invalid status for update"):
        update_receiving_status(client, _line("PO-1", "A", status="QC Cleared"), QC_PENDING_STATUS)
    assert backend.requests == []


def test_po_status_update_requires_inventory_role(backend, client):
    with pytest.raises(PreconditionError, match="Only inventory team or admin"):
        update_receiving_status(client, _line("PO-1", "A"), QC_PENDING_STATUS)
