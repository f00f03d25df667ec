"""Filtering and search over reconciled maps.

Category filtering reuses the aggregator's predicate, so a filtered list always
has exactly as many maps as the category's count.
"""

from datetime import date
from typing import Iterable, List, Optional, Union

from models.maps import AggregateResult, FilterCategory, MapRecord
from reconciliation.aggregate import matches_category


def matches_search(record: MapRecord, term: Optional[str]) -> bool:
    """Case-insensitive substring search over a map and its invoices.

    Searched fields: map id, driver, plate, and each invoice's number,
    customer code and legal name. An empty term matches everything.
    """
    needle = (term or "").strip().upper()
    if not needle:
        return True

    fields = [record.id, record.driver, record.plate]
    for invoice in record.invoices:
        fields.extend([invoice.number, invoice.customer_code, invoice.legal_name])
    return any(needle in (value or "").upper() for value in fields)


def filter_maps(
    maps: Union[AggregateResult, Iterable[MapRecord]],
    category: Optional[FilterCategory] = None,
    search: Optional[str] = None,
    today: Optional[date] = None,
) -> List[MapRecord]:
    """Filter maps by category and search term, preserving source order.

    Args:
        maps: An AggregateResult or any iterable of MapRecord
        category: Category to keep; None keeps every map, Future included
        search: Search term (see matches_search)
        today: Reference date for category checks (required with a category)
    """
    records = maps.maps if isinstance(maps, AggregateResult) else list(maps)

    if category is not None:
        if today is None:
            raise ValueError("today is required when filtering by category")
        category = FilterCategory(category)
        records = [r for r in records if matches_category(r, category, today)]

    return [r for r in records if matches_search(r, search)]


__all__ = ["filter_maps", "matches_category", "matches_search"]
