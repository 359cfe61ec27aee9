from procurement_client.events import BACKORDER_STATUS_UPDATED, PO_STATUS_UPDATED
from procurement_client.services.purchase_orders import QC_PENDING_STATUS
from procurement_client.workflows.components_screen import ComponentsScreen

COMPONENTS = "/nc-requests/purchase-order-components"


def _line(po_number, mpn, status="Material Delivery Pending", **extra):
    row = {
        "po_number": po_number,
        "mpn": mpn,
        "mrf_no": "MRF-1",
        "vendor_name": "Acme",
        "created_at": "2025-11-20",
        "status": status,
        "updated_requested_quantity": "4",
    }
    row.update(extra)
    return row


ROWS = [
    _line("PO-1", "A"),
    _line("PO-1", "A"),
    _line("PO-2", "B", status=QC_PENDING_STATUS),
    _line("PO-3", "C", status="BO-1 material delivery pending", backorder_sequence="BO-1",
          backorder_pending_quantity="2"),
]


def test_requires_token(make_client):
    screen = ComponentsScreen(make_client(token=None), debounce_wait=0)
    assert screen.load() is False
    assert screen.error == "No authentication token found. Please log in."


def test_requires_receiving_role(backend, make_client):
    screen = ComponentsScreen(make_client(role="quality_head"), debounce_wait=0)
    assert screen.load() is False
    assert screen.error.startswith("Unauthorized")
    assert backend.requests == []


def test_load_groups_and_hides_qc_pending(backend, make_client):
    backend.on("GET", COMPONENTS, json={"data": ROWS})
    screen = ComponentsScreen(make_client(role="inventory_head"), debounce_wait=0)
    assert screen.load()
    assert [o.po_number for o in screen.view.rows] == ["PO-3", "PO-1"]
    assert [(c.po_number, c.mpn) for c in screen.components] == [("PO-1", "A"), ("PO-3", "C")]
    assert screen.columns["backorder_sequence"] is True
    assert screen.columns["return_sequence"] is False
    assert screen.backorder_sequences == [{"po_number": "PO-3", "backorder_sequence": "BO-1"}]


def test_empty_list_message(backend, make_client):
    backend.on("GET", COMPONENTS, json={"data": []})
    screen = ComponentsScreen(make_client(role="admin"), debounce_wait=0)
    assert screen.load()
    assert screen.error.startswith("No purchase order components found")


def test_status_update_routes_first_delivery_to_po_endpoint(backend, make_client):
    backend.on("GET", COMPONENTS, json={"data": ROWS})
    backend.on("POST", "/nc-requests/update-po-status", json={"message": "ok"})
    client = make_client(role="inventory_employee")
    events = []
    client.bus.subscribe(PO_STATUS_UPDATED, events.append)
    screen = ComponentsScreen(client, debounce_wait=0)
    screen.load()

    screen.request_status_update(screen.components[0])
    updated = screen.confirm_status_update()

    assert updated.status == QC_PENDING_STATUS
    [request] = backend.calls("POST", "/nc-requests/update-po-status")
    assert backend.body(request) == {"po_number": "PO-1", "mpn": "A", "status": QC_PENDING_STATUS}
    assert screen.components[0].status == QC_PENDING_STATUS
    assert events[0].key == "PO-1"
    assert screen.pending is None


def test_status_update_routes_backorder_to_bo_endpoint(backend, make_client):
    backend.on("GET", COMPONENTS, json={"data": ROWS})
    backend.on("POST", "/nc-requests/update-bo-status", json=None)
    client = make_client(role="inventory_head")
    events = []
    client.bus.subscribe(BACKORDER_STATUS_UPDATED, events.append)
    screen = ComponentsScreen(client, debounce_wait=0)
    screen.load()

    screen.request_status_update(screen.components[1])
    assert screen.confirm_status_update() is not None
    [request] = backend.calls("POST", "/nc-requests/update-bo-status")
    assert backend.body(request)["backorder_sequence"] == "BO-1"
    assert events[0].payload["backorder_sequence"] == "BO-1"


def test_admin_only_roles_may_update(backend, make_client):
    backend.on("GET", COMPONENTS, json={"data": ROWS})
    screen = ComponentsScreen(make_client(role="purchase_head"), debounce_wait=0)
    screen.load()
    screen.request_status_update(screen.components[0])
    assert screen.confirm_status_update() is None
    assert screen.error == "Unauthorized: Only inventory team or admin can update purchase order status"
    assert backend.calls("POST", "/nc-requests/update-po-status") == []


def test_cancel_clears_pending(backend, make_client):
    backend.on("GET", COMPONENTS, json={"data": ROWS})
    screen = ComponentsScreen(make_client(role="admin"), debounce_wait=0)
    screen.load()
    screen.request_status_update(screen.components[0])
    screen.cancel_status_update()
    assert screen.confirm_status_update() is None
