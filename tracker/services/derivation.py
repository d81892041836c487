# tracker/services/derivation.py
"""
Derived fields.

  - purchase order progress: mean of its parts' progress (missing -> 0)
  - project progress: mean of its purchase orders' progress (missing -> 0)

Both means are rounded half-up. A project with no purchase orders has no
derived progress (None) and keeps whatever value it already holds.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from ..models.entities import Part, PurchaseOrder


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def average_progress(values: Iterable[Optional[float]]) -> Optional[int]:
    values = [v or 0 for v in values]
    if not values:
        return None
    return round_half_up(Decimal(str(sum(values))) / Decimal(len(values)))


def parts_progress(parts: List[Part]) -> Optional[int]:
    return average_progress(p.progress for p in parts)


def project_progress(project_id: str, purchase_orders: List[PurchaseOrder]) -> Optional[int]:
    return average_progress(po.progress for po in purchase_orders if po.project_id == project_id)
