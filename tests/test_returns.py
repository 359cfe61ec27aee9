from datetime import datetime

import pytest

from procurement_client.services.returns import (
    approve_return_request,
    fetch_return_requests,
    fetch_user_return_requests,
    reject_return_request,
)
from procurement_client.workflows.return_form import ReturnFormScreen, urf_number

ISSUED = [
    {"umi": "UMI-1", "component_id": 7, "project_name": "Rover", "received_quantity": 5,
     "item_description": "Relay", "mpn": "R-1"},
    {"umi": "UMI-1", "component_id": 8, "received_quantity": 2, "mpn": "R-2"},
]


@pytest.fixture
def form(client):
    return ReturnFormScreen(client, ISSUED, now=datetime(2025, 11, 30, 14, 5, 9))


def test_urf_number_format():
    assert urf_number(datetime(2025, 1, 2, 3, 4, 5)) == "URF-20250102030405"


def test_lines_start_not_initiated(form):
    assert form.urf_no == "URF-20251130140509"
    assert [line.status for line in form.lines] == ["Not Initiated", "Not Initiated"]
    assert form.lines[1].project_name is None


def test_status_follows_return_quantity(form):
    assert form.set_return_qty(0, "3").status == "Return Initiated"
    assert form.set_return_qty(0, "0").status == "Not Initiated"
    form.set_return_qty(0, "2")
    assert form.set_return_qty(0, "").status == "Return Initiated"
    assert form.lines[0].return_qty is None


def test_submit_requires_quantity_and_reason(backend, form):
    form.set_return_qty(0, 2)
    assert form.submit() is None
    assert form.error == "Please fill Return Quantity and Reason for Return for at least one item marked for return!"
    assert backend.requests == []


def test_submit_sends_valid_lines_only(backend, form):
    backend.on("POST", "/returns/submit-return-form", json={"message": "ok", "urfNo": "URF-1", "status": "Return Requested"})
    form.set_return_qty(0, 2)
    form.set_reason(0, "Damaged")
    form.set_return_qty(1, 1)
    form.set_reason(1, "")

    assert form.submit()["urfNo"] == "URF-1"
    [request] = backend.requests
    assert backend.body(request) == {"items": [{
        "umi": "UMI-1",
        "component_id": 7,
        "project_name": "Rover",
        "received_quantity": 5,
        "returnQty": 2,
        "remark": "Damaged",
    }]}
    assert form.lines[0].status == "Return Requested"
    assert form.lines[1].status == "Return Initiated"


def test_missing_project_name_goes_out_as_null_string(backend, form):
    backend.on("POST", "/returns/submit-return-form", json={"message": "ok"})
    form.set_return_qty(1, 1)
    form.set_reason(1, "Wrong part")
    form.submit()
    assert backend.body(backend.requests[0])["items"][0]["project_name"] == "null"


def test_submit_failure(backend, form):
    backend.on("POST", "/returns/submit-return-form", json={"error": "closed"}, status=500)
    form.set_return_qty(0, 1)
    form.set_reason(0, "x")
    assert form.submit() is None
    assert form.error == "Error submitting return form: Failed to submit return form: closed"


def test_fetch_return_requests_kinds(backend, client):
    backend.on("GET", "/returns/return-requests", json=[{"urf_id": "A", "status": None}])
    backend.on("GET", "/returns/past-return-requests", json={"data": [{"urf_id": "B", "status": "Approved"}]})

    assert fetch_return_requests(client, "pending") == [{"urf_id": "A", "status": "Unknown"}]
    assert [r["urf_id"] for r in fetch_return_requests(client, "all")] == ["A", "B"]
    with pytest.raises(ValueError):
        fetch_return_requests(client, "archived")


def test_user_return_requests_fill_defaults(backend, client):
    backend.on("GET", "/returns/user-return-requests", json=[{"urf_id": "A"}])
    assert fetch_user_return_requests(client) == [{"urf_id": "A", "status": "Unknown", "user_id": "unknown"}]


def test_approve_and_reject_return(backend, client):
    backend.on("PUT", "/returns/approve-return/URF-1", json={"message": "approved"})
    backend.on("PUT", "/returns/reject-return/URF-2", json={"message": "rejected"})
    approve_return_request(client, "URF-1", note="fine")
    reject_return_request(client, "URF-2")
    assert [backend.body(r) for r in backend.requests] == [{"note": "fine"}, {"note": None}]
