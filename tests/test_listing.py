from procurement_client.models.purchase import Component, PurchaseOrder
from procurement_client.views.listing import (
    ASC,
    DESC,
    PURCHASE_ORDER_SPEC,
    FilterState,
    ListView,
    filter_rows,
    page_count,
    paginate,
    sort_rows,
    toggle_direction,
)


def _orders():
    data = [
        ("PO-3", "MRF-7", "Acme", "2025-11-01T09:00:00", "Resistor 10k"),
        ("PO-1", "DPO-2", "Bolt Co", "2025-11-01T18:00:00", "Capacitor"),
        ("PO-2", "MRF-9", "Acme", "2025-11-02", "Diode"),
        ("PO-4", "MRF-10", "Zen", None, "Resistor 1k"),
    ]
    parents, children = [], []
    for po_number, mrf, vendor, created, description in data:
        component = Component(
            component_id=po_number[-1],
            po_number=po_number,
            mrf_no=mrf,
            vendor_name=vendor,
            po_created_at=created,
            item_description=description,
        )
        children.append(component)
        parents.append(
            PurchaseOrder(
                po_number=po_number,
                mrf_no=mrf,
                vendor_name=vendor,
                po_created_at=created,
                components=[component],
            )
        )
    return parents, children


def _numbers(rows):
    return [r.po_number for r in rows]


def test_combined_filter_equals_sequential_filters():
    parents, children = _orders()
    combined = filter_rows(parents, children, PURCHASE_ORDER_SPEC, FilterState("acme", "2025-11-01", True))

    step = filter_rows(parents, children, PURCHASE_ORDER_SPEC, FilterState(text="acme"))
    step = filter_rows(*step, PURCHASE_ORDER_SPEC, FilterState(date="2025-11-01"))
    step = filter_rows(*step, PURCHASE_ORDER_SPEC, FilterState(flag=True))

    assert _numbers(combined[0]) == _numbers(step[0]) == ["PO-3"]
    assert _numbers(combined[1]) == _numbers(step[1])


def test_text_filter_matches_child_fields():
    parents, children = _orders()
    kept, _ = filter_rows(parents, children, PURCHASE_ORDER_SPEC, FilterState(text="RESISTOR"))
    assert sorted(_numbers(kept)) == ["PO-3", "PO-4"]


def test_date_filter_ignores_time_of_day():
    parents, children = _orders()
    kept, kept_children = filter_rows(parents, children, PURCHASE_ORDER_SPEC, FilterState(date="2025-11-01"))
    assert sorted(_numbers(kept)) == ["PO-1", "PO-3"]
    assert sorted(_numbers(kept_children)) == ["PO-1", "PO-3"]


def test_mrf_flag_keeps_plain_mrf_numbers():
    parents, children = _orders()
    kept, _ = filter_rows(parents, children, PURCHASE_ORDER_SPEC, FilterState(flag=True))
    assert sorted(_numbers(kept)) == ["PO-2", "PO-3", "PO-4"]


def test_sort_toggle_and_stability():
    rows = [{"v": "b", "i": 0}, {"v": "a", "i": 1}, {"v": "b", "i": 2}, {"v": "a", "i": 3}]

    assert toggle_direction(None, ASC, "v") == ASC
    assert toggle_direction("v", ASC, "v") == DESC
    assert toggle_direction("v", DESC, "v") == ASC
    assert toggle_direction("v", DESC, "other") == ASC

    asc = sort_rows(rows, "v", ASC)
    assert [r["i"] for r in asc] == [1, 3, 0, 2]
    desc = sort_rows(rows, "v", DESC)
    assert [r["i"] for r in desc] == [0, 2, 1, 3]


def test_sort_by_twice_then_back_to_ascending():
    parents, children = _orders()
    view = ListView(page_size=10)
    view.set_data(parents, children)

    view.sort_by("vendor_name")
    first = _numbers(view.rows)
    assert first == ["PO-3", "PO-2", "PO-1", "PO-4"]
    view.sort_by("vendor_name")
    assert view.sort_direction == DESC
    view.sort_by("vendor_name")
    assert _numbers(view.rows) == first


def test_date_sort_puts_missing_dates_first():
    parents, _ = _orders()
    rows = sort_rows(parents, "po_created_at", ASC, PURCHASE_ORDER_SPEC.date_keys)
    assert _numbers(rows) == ["PO-4", "PO-3", "PO-1", "PO-2"]


def test_numbers_sort_numerically_and_case_is_ignored():
    rows = [{"q": 10}, {"q": 9}, {"q": None}]
    assert [r["q"] for r in sort_rows(rows, "q", ASC)] == [None, 9, 10]
    names = [{"n": "beta"}, {"n": "Alpha"}]
    assert [r["n"] for r in sort_rows(names, "n", ASC)] == ["Alpha", "beta"]


def test_pages_partition_the_filtered_rows():
    rows = list(range(23))
    pages = page_count(len(rows), 10)
    assert pages == 3
    chunks = [paginate(rows, p, 10) for p in range(1, pages + 1)]
    assert all(len(chunk) <= 10 for chunk in chunks)
    assert sum(chunks, []) == rows
    assert page_count(0, 10) == 0


def test_filter_change_resets_page():
    parents, children = _orders()
    view = ListView(page_size=1)
    view.set_data(parents, children)
    view.go_to_page(3)
    assert view.page == 3
    view.set_text("acme")
    assert view.page == 1
    assert view.total_pages == 2


def test_go_to_page_is_clamped():
    parents, children = _orders()
    view = ListView(page_size=3)
    view.set_data(parents, children)
    view.go_to_page(99)
    assert view.page == 2
    view.go_to_page(0)
    assert view.page == 1


def test_drill_in_and_back_restores_filtered_list():
    parents, children = _orders()
    view = ListView(sort_key="po_number", sort_direction=DESC)
    view.set_data(parents, children)
    view.set_text("acme")
    before = _numbers(view.rows)

    view.drill_into(view.rows[0])
    assert _numbers(view.rows) == ["PO-3"]
    assert view.rows[0].item_description == "Resistor 10k"

    view.back()
    assert _numbers(view.rows) == before == ["PO-3", "PO-2"]


def test_drilled_children_ignore_text_filter():
    parents, children = _orders()
    extra = Component(component_id="9", po_number="PO-3", item_description="Inductor")
    view = ListView()
    view.set_data(parents, children + [extra])
    view.set_text("resistor 10k")
    view.drill_into(parents[0])
    assert [c.item_description for c in view.rows] == ["Resistor 10k", "Inductor"]


def test_replace_child_keeps_filters():
    parents, children = _orders()
    view = ListView()
    view.set_data(parents, children)
    view.set_text("diode")
    updated = children[2].model_copy(update={"updated_requested_quantity": 42})
    view.replace_child(lambda c: c.po_number == "PO-2", updated)
    assert view.filters.text == "diode"
    assert [c.updated_requested_quantity for c in view.children] == [42]
