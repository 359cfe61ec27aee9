from .purchase import Component, PurchaseOrder, ReceivingLine, ReceivingOrder
from .backorder import BackorderItem, Backorder, ReturnLine
from .approval import ApprovalRequest, ApprovalLine
from .vendor import Vendor
from .bom import BomLine, ShortageLine, PendingIssueRequest

__all__ = [
    "Component",
    "PurchaseOrder",
    "ReceivingLine",
    "ReceivingOrder",
    "BackorderItem",
    "Backorder",
    "ReturnLine",
    "ApprovalRequest",
    "ApprovalLine",
    "Vendor",
    "BomLine",
    "ShortageLine",
    "PendingIssueRequest",
]
