"""Quote computation and persistence."""

from geodesk.quotes.calculator import (
    ComputedLineItem,
    LineItemInput,
    QuoteComputation,
    QuoteRequest,
    compute_quote,
)
from geodesk.quotes.engine import QuotationEngine, QuoteResult

__all__ = [
    "ComputedLineItem",
    "LineItemInput",
    "QuotationEngine",
    "QuoteComputation",
    "QuoteRequest",
    "QuoteResult",
    "compute_quote",
]
