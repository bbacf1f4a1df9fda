from typing import Iterable

from ..models_invoice import LineItem
from ..schemas import LineItemInput
from ..services.pricing_calculator import money


def build_line_items(org_id: int, items: Iterable[LineItemInput]) -> list[LineItem]:
    """
    LineItem rows for an invoice, job or estimate, in submission order.
    The caller attaches them to exactly one owner through its relationship.
    """
    return [
        LineItem(
            org_id=org_id,
            name=item.name,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=money(item.quantity * item.unit_price),
            sort_order=index,
        )
        for index, item in enumerate(items)
    ]


def copy_line_items(org_id: int, source: Iterable[LineItem]) -> list[LineItem]:
    """Detached copies of existing line items, e.g. job items onto a new invoice"""
    return [
        LineItem(
            org_id=org_id,
            name=item.name,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=money(item.quantity * item.unit_price),
            sort_order=index,
        )
        for index, item in enumerate(source)
    ]
