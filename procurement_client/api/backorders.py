# procurement_client/api/backorders.py

from fastapi import APIRouter, Depends, Query

from ..client import ApiClient
from ..services.backorders import MATERIAL_IN_STATUSES, fetch_backorder_items
from ..views.listing import BACKORDER_SPEC, DESC, FilterState, ListView
from ..workflows.material_in import group_backorders
from .deps import get_client

router = APIRouter(prefix="/api/backorders", tags=["backorders"])

_VALID_STATUSES = {s.lower() for s in MATERIAL_IN_STATUSES}


@router.get("")
def list_backorders(
    q: str = "",
    direction: str = Query(DESC, pattern="^(asc|desc)$"),
    client: ApiClient = Depends(get_client),
):
    """
    Backorders waiting for material-in, each with its QC-inspected lines
    and whether material-in is complete for all of them.
    """
    items = [
        item for item in fetch_backorder_items(client)
        if item.backorder_number != "N/A" and item.status.lower() in _VALID_STATUSES
    ]
    view = ListView(spec=BACKORDER_SPEC, sort_key="backorder_number", sort_direction=direction)
    view.set_data(group_backorders(items), items)
    view.filters = FilterState(text=q)
    view.refresh()

    result = []
    for backorder in view.parents:
        lines = [i for i in items if i.backorder_number == backorder.backorder_number]
        result.append(
            {
                **backorder.model_dump(),
                "material_in_complete": all(i.material_in_done for i in lines),
                "items": [
                    {**i.model_dump(), "can_backorder": i.can_backorder, "can_return": i.can_return}
                    for i in lines
                ],
            }
        )
    return result
