"""Quote line item model for Geodesk.

A line item is one billable component of a project's quote. The whole set
for a project is replaced on every quote (re)generation; items are never
patched individually.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from geodesk.database.models.base import Base, Money, Quantity, TimestampMixin


class QuoteLineItem(TimestampMixin, Base):
    """A billable component of a quote.

    Attributes:
        project_id: Owning project.
        description: Non-empty description.
        quantity: Non-negative quantity.
        unit_price: Non-negative price per unit.
        uom: Unit of measure.
        total_price: quantity x unit_price.
        category: Pricing category.
        sort_order: Display position.
    """

    __tablename__ = "quote_line_items"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Quantity, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    uom: Mapped[str] = mapped_column(Text, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
