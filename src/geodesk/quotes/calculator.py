"""Quote computation.

Pure functions: given the staff-supplied quote request they produce every
figure stored on the project and the sanitized line items. Nothing here
touches the database.

Rules:
- quantity and unit price are coerced to non-negative numbers; invalid or
  missing values become 0
- items whose description is empty after trimming are dropped
- subtotal = sum of quantity x unit price + clearance + mobilization +
  accommodation (each initiation cost floored at 0); line totals are
  rounded to cents for display only and never feed the subtotal
- discount is clamped to [0, subtotal]; total = subtotal - discount and
  must be greater than 0
- prepayment percentage is clamped to [0, 100]; prepayment + balance == total
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from geodesk.config import QuoteConfig
from geodesk.errors import ValidationError

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


class LineItemInput(BaseModel):
    """One requested line item, before sanitization.

    Numeric fields are deliberately untyped: malformed values are coerced
    to zero rather than rejected.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    description: Any = None
    quantity: Any = None
    unit_price: Any = None
    uom: Any = None
    category: Any = None
    sort_order: Any = None


class QuoteRequest(BaseModel):
    """Staff input for generating a quote. Accepts snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    line_items: list[LineItemInput] = Field(default_factory=list)
    clearance_access_cost: Any = None
    mobilization_cost: Any = None
    accommodation_cost: Any = None
    discount_amount: Any = None
    prepayment_pct: Any = None
    client_rating_id: str | None = None
    service_factor: Any = None
    depth_factor: str | None = None
    area_discounted_sqm: Any = None
    risk_profile: str | None = None
    risk_multiplier: Any = None
    service_head_count: Any = None
    data_collection_days: Any = None
    evaluation_days: Any = None
    estimated_weeks: Any = None
    notes: Any = None


@dataclass(frozen=True)
class ComputedLineItem:
    """A sanitized line item ready to insert."""

    description: str
    quantity: Decimal
    unit_price: Decimal
    uom: str
    total_price: Decimal
    category: str
    sort_order: int

    def as_row(self, project_id: Any) -> dict[str, Any]:
        return {
            "project_id": project_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "uom": self.uom,
            "total_price": self.total_price,
            "category": self.category,
            "sort_order": self.sort_order,
        }


@dataclass(frozen=True)
class QuoteComputation:
    """Every figure produced for one quote.

    Attributes:
        line_items: Kept, sanitized line items.
        initiation: Sum of the three initiation costs.
        subtotal: Exact line products plus initiation.
        discount: Discount after clamping.
        total_jmd: Primary-currency total.
        total_usd: Secondary-currency total, rounded to cents.
        prepayment_pct / prepayment_amount: Up-front share.
        balance_pct / balance_amount: Remaining share.
        project_values: Extra quote inputs persisted on the project row.
    """

    line_items: tuple[ComputedLineItem, ...]
    clearance_access_cost: Decimal
    mobilization_cost: Decimal
    accommodation_cost: Decimal
    initiation: Decimal
    subtotal: Decimal
    discount: Decimal
    total_jmd: Decimal
    total_usd: Decimal
    prepayment_pct: Decimal
    prepayment_amount: Decimal
    balance_pct: Decimal
    balance_amount: Decimal
    project_values: dict[str, Any]

    def project_fields(self) -> dict[str, Any]:
        """Column values written to the project alongside status=quoted."""
        return {
            **self.project_values,
            "clearance_access_cost": self.clearance_access_cost,
            "mobilization_cost": self.mobilization_cost,
            "accommodation_cost": self.accommodation_cost,
            "subtotal": self.subtotal,
            "discount_amount": self.discount,
            "total_cost_jmd": self.total_jmd,
            "total_cost_usd": self.total_usd,
            "prepayment_pct": self.prepayment_pct,
            "prepayment_amount": self.prepayment_amount,
            "balance_pct": self.balance_pct,
            "balance_amount": self.balance_amount,
        }


def to_number(value: Any, default: Decimal = ZERO) -> Decimal:
    """Coerce a JSON value to a finite Decimal, or return default.

    Booleans count as 0/1, numeric strings are parsed, and None, blanks,
    non-numeric text, NaN and infinities yield the default.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, (int, Decimal)):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        if not value.strip():
            return default
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return default
    else:
        return default
    return result if result.is_finite() else default


def non_negative(value: Any) -> Decimal:
    return max(ZERO, to_number(value))


def clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def optional_number(value: Any) -> Decimal | None:
    """None when absent, otherwise the coerced number."""
    return None if value is None else to_number(value)


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sanitize_line_items(
    items: list[LineItemInput],
    config: QuoteConfig,
) -> list[ComputedLineItem]:
    """Coerce, default and filter requested line items."""
    kept: list[ComputedLineItem] = []
    for index, item in enumerate(items):
        description = clean_str(item.description)
        if not description:
            continue
        quantity = non_negative(item.quantity)
        unit_price = non_negative(item.unit_price)
        kept.append(
            ComputedLineItem(
                description=description,
                quantity=quantity,
                unit_price=unit_price,
                uom=clean_str(item.uom) or config.default_uom,
                total_price=money(quantity * unit_price),
                category=clean_str(item.category) or config.default_category,
                sort_order=int(to_number(item.sort_order, Decimal(index))),
            )
        )
    return kept


def compute_quote(request: QuoteRequest, config: QuoteConfig) -> QuoteComputation:
    """Compute a quote from a staff request.

    Raises:
        ValidationError: If the total is not greater than zero.
    """
    line_items = sanitize_line_items(request.line_items, config)

    clearance = non_negative(request.clearance_access_cost)
    mobilization = non_negative(request.mobilization_cost)
    accommodation = non_negative(request.accommodation_cost)
    initiation = clearance + mobilization + accommodation

    subtotal = sum((li.quantity * li.unit_price for li in line_items), ZERO) + initiation
    discount = min(non_negative(request.discount_amount), subtotal)
    total = subtotal - discount

    if total <= 0:
        raise ValidationError("Total must be greater than 0", total=str(total))

    usd_rate = Decimal(str(config.usd_rate))
    default_pct = Decimal(str(config.default_prepayment_pct))
    pct = min(HUNDRED, max(ZERO, to_number(request.prepayment_pct, default_pct)))
    prepayment = money(total * pct / HUNDRED)

    head_count = max(Decimal(1), to_number(request.service_head_count, Decimal(1)))

    return QuoteComputation(
        line_items=tuple(line_items),
        clearance_access_cost=clearance,
        mobilization_cost=mobilization,
        accommodation_cost=accommodation,
        initiation=initiation,
        subtotal=subtotal,
        discount=discount,
        total_jmd=total,
        total_usd=money(total / usd_rate),
        prepayment_pct=pct,
        prepayment_amount=prepayment,
        balance_pct=HUNDRED - pct,
        balance_amount=total - prepayment,
        project_values={
            "client_rating_id": request.client_rating_id or None,
            "service_factor": to_number(request.service_factor) or None,
            "depth_factor": request.depth_factor or None,
            "area_discounted_sqm": optional_number(request.area_discounted_sqm),
            "risk_profile": request.risk_profile or None,
            "risk_multiplier": optional_number(request.risk_multiplier),
            "service_head_count": int(head_count),
            "data_collection_days": optional_number(request.data_collection_days),
            "evaluation_days": optional_number(request.evaluation_days),
            "estimated_weeks": optional_number(request.estimated_weeks),
            "admin_notes": clean_str(request.notes) or None,
        },
    )
