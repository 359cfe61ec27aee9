# procurement_client/views/listing.py
"""
Client-side list engine shared by the PO, PO-component and backorder screens.

The full dataset stays in memory; every filter change recomputes the
visible rows from it in a fixed order:

    text filter -> date filter -> flag filter -> sort -> page

Parents (POs, backorders) and their children (lines) are linked by a key
field. Drilling into a parent shows that parent's children only,
independent of the top-level filters, until back() is called.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Tuple

from ..config import settings
from ..utils.helpers import is_mrf_format, normalize_date_string, parse_datetime

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class EntitySpec:
    """Which fields of a parent/child pair each filter and sort looks at."""
    key_field: str = "po_number"
    text_fields: Tuple[str, ...] = ("po_number", "vendor_name")
    child_text_fields: Tuple[str, ...] = ()
    date_field: Optional[str] = "po_created_at"
    flag_field: Optional[str] = "mrf_no"
    flag_test: Callable[[Any], bool] = is_mrf_format
    # Sort keys compared as dates
    date_keys: FrozenSet[str] = frozenset({"po_created_at", "expected_delivery_date"})


PURCHASE_ORDER_SPEC = EntitySpec(child_text_fields=("item_description", "mpn"))

BACKORDER_SPEC = EntitySpec(
    key_field="backorder_number",
    text_fields=("backorder_number",),
    date_field=None,
    flag_field=None,
    date_keys=frozenset({"expected_delivery_date"}),
)

RECEIVING_SPEC = EntitySpec(
    text_fields=("po_number",),
    date_field=None,
    flag_field=None,
    date_keys=frozenset({"created_at", "expected_delivery_date"}),
)


@dataclass(frozen=True)
class FilterState:
    text: str = ""
    date: str = ""      # YYYY-MM-DD
    flag: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.text or self.date or self.flag)


def field_value(row: Any, name: str) -> Any:
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def _contains(row: Any, fields: Iterable[str], needle: str) -> bool:
    for name in fields:
        value = field_value(row, name)
        if value is not None and needle in str(value).lower():
            return True
    return False


def filter_rows(
    parents: List[Any],
    children: List[Any],
    spec: EntitySpec,
    state: FilterState,
) -> Tuple[List[Any], List[Any]]:
    """
    Apply the text, date and flag filters (each a plain conjunction).

    Returns (parents, children). A parent whose own fields miss the text
    term is still kept when one of its children matches it.
    """
    key = spec.key_field

    if state.text:
        needle = state.text.lower()
        child_hits = {
            field_value(c, key) for c in children if _contains(c, spec.child_text_fields, needle)
        }
        parents = [
            p for p in parents
            if _contains(p, spec.text_fields, needle) or field_value(p, key) in child_hits
        ]
        kept = {field_value(p, key) for p in parents}
        children = [
            c for c in children
            if field_value(c, key) in kept or _contains(c, spec.child_text_fields, needle)
        ]

    if state.date and spec.date_field:
        wanted = normalize_date_string(state.date)
        parents = [p for p in parents if normalize_date_string(field_value(p, spec.date_field)) == wanted]
        kept = {field_value(p, key) for p in parents}
        children = [c for c in children if field_value(c, key) in kept]

    if state.flag and spec.flag_field:
        parents = [p for p in parents if spec.flag_test(field_value(p, spec.flag_field))]
        kept = {field_value(p, key) for p in parents}
        children = [c for c in children if field_value(c, key) in kept]

    return parents, children


# ---------- sort ----------

_EPOCH = datetime(1970, 1, 1)


def _date_key(value: Any) -> datetime:
    parsed = parse_datetime(value)
    if parsed is None:
        return _EPOCH
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _value_key(value: Any) -> Tuple[int, Any]:
    # blanks compare as 0 / "" and sort first
    if value is None or value == "":
        return (0, 0.0)
    if isinstance(value, (int, float)):
        return (0, float(value))
    if isinstance(value, (date, datetime)):
        return (1, str(value))
    return (1, str(value).casefold())


def sort_rows(rows: List[Any], key: Optional[str], direction: str = ASC, date_keys: FrozenSet[str] = frozenset()) -> List[Any]:
    """Stable sort; ties keep their relative order in both directions."""
    if not key:
        return list(rows)
    if key in date_keys:
        sort_key = lambda r: _date_key(field_value(r, key))  # noqa: E731
    else:
        sort_key = lambda r: _value_key(field_value(r, key))  # noqa: E731
    return sorted(rows, key=sort_key, reverse=(direction == DESC))


def toggle_direction(current_key: Optional[str], current_direction: str, key: str) -> str:
    """asc -> desc on the same column, asc on a new one."""
    if current_key == key and current_direction == ASC:
        return DESC
    return ASC


# ---------- pagination ----------

def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size > 0 else 0


def paginate(rows: List[Any], page: int, page_size: int) -> List[Any]:
    """Rows of 1-based page `page`."""
    start = (page - 1) * page_size
    return rows[start:start + page_size]


# ---------- stateful view ----------

@dataclass
class ListView:
    """
    Filter/sort/page state of one screen over a parent/child dataset.

    All mutators recompute `parents` / `children` from the full data.
    """
    spec: EntitySpec = PURCHASE_ORDER_SPEC
    sort_key: Optional[str] = None
    sort_direction: str = ASC
    page_size: int = field(default_factory=lambda: settings.page_size)

    all_parents: List[Any] = field(default_factory=list)
    all_children: List[Any] = field(default_factory=list)
    filters: FilterState = field(default_factory=FilterState)
    page: int = 1
    selected: Any = None

    parents: List[Any] = field(default_factory=list)
    children: List[Any] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.refresh()

    # --- data ---

    def set_data(self, parents: List[Any], children: List[Any]) -> None:
        """Replace the dataset; leaves any drill-down and resets paging."""
        self.all_parents = list(parents)
        self.all_children = list(children)
        self.selected = None
        self.page = 1
        self.refresh()

    def replace_child(self, match: Callable[[Any], bool], updated: Any) -> None:
        """Swap one child in the full dataset, keeping filters and page."""
        self.all_children = [updated if match(c) else c for c in self.all_children]
        self.refresh()

    def refresh(self) -> None:
        parents, children = filter_rows(self.all_parents, self.all_children, self.spec, self.filters)
        if self.selected is not None:
            selected_key = field_value(self.selected, self.spec.key_field)
            children = [
                c for c in self.all_children if field_value(c, self.spec.key_field) == selected_key
            ]
        self.parents = sort_rows(parents, self.sort_key, self.sort_direction, self.spec.date_keys)
        self.children = sort_rows(children, self.sort_key, self.sort_direction, self.spec.date_keys)

    # --- filters ---

    def _set_filters(self, **changes) -> None:
        self.filters = replace(self.filters, **changes)
        self.page = 1
        self.refresh()

    def set_text(self, text: str) -> None:
        self._set_filters(text=text or "")

    def set_date(self, value: Any) -> None:
        self._set_filters(date=normalize_date_string(value) if value else "")

    def set_flag(self, flag: bool) -> None:
        self._set_filters(flag=bool(flag))

    def clear_filters(self) -> None:
        self._set_filters(text="", date="", flag=False)

    # --- sort / paging ---

    def sort_by(self, key: str) -> None:
        self.sort_direction = toggle_direction(self.sort_key, self.sort_direction, key)
        self.sort_key = key
        self.refresh()

    @property
    def rows(self) -> List[Any]:
        """Visible rows: the drilled-into parent's children, or the parents."""
        return self.children if self.selected is not None else self.parents

    @property
    def total_pages(self) -> int:
        return page_count(len(self.rows), self.page_size)

    @property
    def page_rows(self) -> List[Any]:
        return paginate(self.rows, self.page, self.page_size)

    def go_to_page(self, page: int) -> None:
        self.page = min(max(page, 1), max(self.total_pages, 1))

    # --- drill-down ---

    def drill_into(self, parent: Any) -> None:
        self.selected = parent
        self.page = 1
        self.refresh()

    def back(self) -> None:
        self.selected = None
        self.page = 1
        self.refresh()
