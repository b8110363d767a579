"""
Project pricing and photo freshness

Pure functions: no storage access, no clock reads unless a clock is passed.
"""
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .clock import Clock, SystemClock, ensure_utc
from .constants import PHOTO_UPDATE_INTERVAL_DAYS
from .models import Project, Talent


@dataclass(frozen=True)
class ProjectCosts:
    subtotal: float
    profit: float
    total: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def _line_item(project_talent: Any) -> Tuple[str, Optional[float]]:
    """(talent_id, custom_price) from a ProjectTalent or a wire/JSON mapping"""
    if isinstance(project_talent, Mapping):
        talent_id = project_talent.get("talent_id", project_talent.get("talentId"))
        custom_price = project_talent.get("custom_price", project_talent.get("customPrice"))
        return talent_id, custom_price
    return project_talent.talent_id, project_talent.custom_price


def costs_from_prices(
    prices: Mapping[str, float],
    project_talents: Iterable[Any],
    profit_margin_percent: float,
) -> ProjectCosts:
    """
    Price a project from a talent-id -> price lookup.

    Line items whose talent is missing from `prices` add nothing. A custom
    price, when set, wins over the talent's own price. Negative margins give
    a discount.
    """
    subtotal = 0
    for project_talent in project_talents:
        talent_id, custom_price = _line_item(project_talent)
        if talent_id not in prices:
            continue
        subtotal += custom_price if custom_price is not None else prices[talent_id]

    profit = subtotal * profit_margin_percent / 100
    return ProjectCosts(subtotal=subtotal, profit=profit, total=subtotal + profit)


def calculate_project_costs(
    talents: Sequence[Talent],
    project_talents: Iterable[Any],
    profit_margin_percent: float,
) -> ProjectCosts:
    """Subtotal, profit and total for a project's talent line items"""
    prices = {talent.id: talent.price_per_project for talent in talents}
    return costs_from_prices(prices, project_talents, profit_margin_percent)


def outstanding_balance(project: Project, talents: Sequence[Talent]) -> float:
    """What the client still owes: project total minus recorded payments"""
    costs = calculate_project_costs(talents, project.talents, project.profit_margin_percent)
    return costs.total - (project.total_paid or 0)


def days_since(moment: datetime, now: datetime) -> int:
    """Whole days elapsed, floored (negative when moment is in the future)"""
    elapsed = ensure_utc(now) - ensure_utc(moment)
    return math.floor(elapsed.total_seconds() / 86400)


def needs_photo_update(talent: Talent, now: Optional[datetime] = None, clock: Optional[Clock] = None) -> bool:
    """True once a talent's photos are at least 30 whole days old"""
    if now is None:
        now = (clock or SystemClock()).now()
    return days_since(talent.last_photo_update, now) >= PHOTO_UPDATE_INTERVAL_DAYS
