"""Category aggregation.

Every reconciled map is evaluated against each triage category independently
(categories overlap), relative to an explicit reference date. The one
exception is Future: a map issued after the reference date is counted in
Future and nowhere else.

| Category        | Condition (all but Future also require "not future")    |
|-----------------|---------------------------------------------------------|
| All             | -                                                       |
| PriorDays       | issued before today                                     |
| Open            | status "aberto"                                         |
| Released        | status "liberado" or "concluido"                        |
| FinanceReleased | status "financeiro liberado"                            |
| NotDeparted     | depart empty                                            |
| EnRoute         | depart set; arrive, physical, financial confirms empty  |
| PhysicalDelay   | arrive set, physical confirm empty, status "aberto"     |
| AutoReopened    | map is auto-reopened                                    |
| NonFinancial    | no invoice with a financial category                    |
| Future          | issued strictly after today                             |
"""

from datetime import date
from typing import Dict, List, Optional, Set

from models.maps import (
    DEFAULT_FUTURE_LABEL,
    AggregateResult,
    FilterCategory,
    MapRecord,
)
from reconciliation.normalize import is_time_empty, today_label


STATUS_OPEN = "aberto"
STATUS_RELEASED = ("liberado", "concluido")
STATUS_FINANCE_RELEASED = "financeiro liberado"


def is_today(record: MapRecord, today: date, today_text: Optional[str] = None) -> bool:
    """Exact text match first, calendar equality otherwise."""
    if record.issue_date_text == (today_text or today_label(today)):
        return True
    return record.issue_date == today


def is_future(record: MapRecord, today: date) -> bool:
    return record.issue_date > today


def categorize(record: MapRecord, today: date, today_text: Optional[str] = None) -> Set[FilterCategory]:
    """Return every category a map belongs to on the reference date."""
    if is_future(record, today):
        return {FilterCategory.FUTURE}

    status = record.status_lower
    timing = record.timing
    categories = {FilterCategory.ALL}

    if not is_today(record, today, today_text):
        categories.add(FilterCategory.PRIOR_DAYS)
    if status == STATUS_OPEN:
        categories.add(FilterCategory.OPEN)
    if status in STATUS_RELEASED:
        categories.add(FilterCategory.RELEASED)
    if status == STATUS_FINANCE_RELEASED:
        categories.add(FilterCategory.FINANCE_RELEASED)

    if is_time_empty(timing.depart):
        categories.add(FilterCategory.NOT_DEPARTED)
    elif (
        is_time_empty(timing.arrive)
        and is_time_empty(timing.physical_confirm)
        and is_time_empty(timing.financial_confirm)
    ):
        categories.add(FilterCategory.EN_ROUTE)

    if (
        not is_time_empty(timing.arrive)
        and is_time_empty(timing.physical_confirm)
        and status == STATUS_OPEN
    ):
        categories.add(FilterCategory.PHYSICAL_DELAY)

    if record.is_auto_reopened:
        categories.add(FilterCategory.AUTO_REOPENED)
    if record.is_non_financial:
        categories.add(FilterCategory.NON_FINANCIAL)

    return categories


def matches_category(record: MapRecord, category: FilterCategory, today: date) -> bool:
    """True if the map is counted under the category on the reference date."""
    return FilterCategory(category) in categorize(record, today)


class Aggregator:
    """Counts maps per category and tracks the earliest future issue date.

    Usage:
        aggregator = Aggregator(today)
        for record in records:
            aggregator.add(record)
        result = aggregator.result()
    """

    def __init__(self, today: date):
        self.today = today
        self.today_text = today_label(today)
        self.maps: List[MapRecord] = []
        self.counts: Dict[str, int] = {category.value: 0 for category in FilterCategory}
        self._earliest_future: Optional[MapRecord] = None

    def add(self, record: MapRecord) -> Set[FilterCategory]:
        categories = categorize(record, self.today, self.today_text)
        for category in categories:
            self.counts[category.value] += 1

        if FilterCategory.FUTURE in categories:
            earliest = self._earliest_future
            if earliest is None or record.issue_date < earliest.issue_date:
                self._earliest_future = record

        self.maps.append(record)
        return categories

    @property
    def future_label(self) -> str:
        if self._earliest_future is None:
            return DEFAULT_FUTURE_LABEL
        return f"FAT {self._earliest_future.issue_date_text}"

    def result(self) -> AggregateResult:
        return AggregateResult(
            maps=list(self.maps),
            counts=dict(self.counts),
            future_label=self.future_label,
        )


def aggregate(records: List[MapRecord], today: date) -> AggregateResult:
    """Aggregate reconciled maps in order."""
    aggregator = Aggregator(today)
    for record in records:
        aggregator.add(record)
    return aggregator.result()
