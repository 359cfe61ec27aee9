# procurement_client/workflows/return_form.py
"""
Material return form: the user picks issued items, enters how many go
back and why, and submits one URF (User Return Form).
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..client import ApiClient
from ..client.normalize import is_blank, to_int
from ..models.backorder import ReturnLine
from ..services.returns import submit_return_form
from .screen import Screen

logger = logging.getLogger(__name__)

NOT_INITIATED = "Not Initiated"
RETURN_INITIATED = "Return Initiated"


def urf_number(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("URF-%Y%m%d%H%M%S")


def _line(item: Union[ReturnLine, Mapping[str, Any]]) -> ReturnLine:
    if isinstance(item, ReturnLine):
        return item.model_copy(update={"return_qty": None, "reason_for_return": "", "status": NOT_INITIATED})
    return ReturnLine(
        umi=item.get("umi"),
        component_id=item.get("component_id"),
        project_name=item.get("project_name"),
        received_quantity=item.get("received_quantity") or 0,
        item_description=item.get("item_description") or "N/A",
        mpn=item.get("mpn") or "N/A",
        part_no=item.get("part_no") or "N/A",
        make=item.get("make") or "N/A",
    )


class ReturnFormScreen(Screen):

    def __init__(
        self,
        client: ApiClient,
        items: Iterable[Union[ReturnLine, Mapping[str, Any]]],
        now: Optional[datetime] = None,
    ):
        super().__init__(client)
        self.lines: List[ReturnLine] = [_line(item) for item in items]
        self.urf_no = urf_number(now)
        self.submitted: Optional[Dict[str, Any]] = None

    def set_return_qty(self, index: int, value: Any) -> ReturnLine:
        line = self.lines[index]
        line.return_qty = None if is_blank(value) and value != 0 else to_int(value)
        if line.return_qty is not None:
            line.status = RETURN_INITIATED if line.return_qty > 0 else NOT_INITIATED
        return line

    def set_reason(self, index: int, reason: str) -> ReturnLine:
        line = self.lines[index]
        line.reason_for_return = reason or ""
        return line

    def remove(self, index: int) -> None:
        del self.lines[index]

    def valid_lines(self) -> List[ReturnLine]:
        return [
            line for line in self.lines
            if line.return_qty and line.return_qty > 0
            and line.reason_for_return
            and line.status == RETURN_INITIATED
        ]

    @staticmethod
    def payload(line: ReturnLine) -> Dict[str, Any]:
        return {
            "umi": line.umi,
            "component_id": line.component_id,
            "project_name": line.project_name or "null",
            "received_quantity": line.received_quantity or 0,
            "returnQty": int(line.return_qty or 0),
            "remark": line.reason_for_return,
        }

    def submit(self) -> Optional[Dict[str, Any]]:
        valid = self.valid_lines()
        if not valid:
            self.error = "Please fill Return Quantity and Reason for Return for at least one item marked for return!"
            return None
        self.error = None

        response = self._call(
            submit_return_form,
            self.client,
            [self.payload(line) for line in valid],
            failure="Error submitting return form: {}",
        )
        if response is None:
            return None

        status = (response.get("status") if isinstance(response, Mapping) else None) or RETURN_INITIATED
        for line in valid:
            line.status = status
        self.submitted = dict(response) if isinstance(response, Mapping) else {}
        logger.info("Submitted return form %s with %d line(s)", self.urf_no, len(valid))
        return self.submitted
