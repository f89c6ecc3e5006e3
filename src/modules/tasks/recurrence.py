"""Expansion of a task template into a series of dated occurrences."""

from datetime import date

from dateutil.relativedelta import relativedelta

from src.core.errors import ValidationError
from src.domain.create_models import TaskCreate
from src.domain.task import Cadence, Frequency


CADENCE_STEPS: dict[Cadence, relativedelta] = {
    Cadence.DAILY: relativedelta(days=1),
    Cadence.WEEKLY: relativedelta(weeks=1),
    Cadence.MONTHLY: relativedelta(months=1),
    Cadence.YEARLY: relativedelta(years=1),
}


def to_cadence(value: Cadence | Frequency | str) -> Cadence:
    """Coerce a frequency to a cadence; Adhoc and unknown values are rejected."""
    try:
        return Cadence(value)
    except ValueError as e:
        msg = f"Cannot expand a task with frequency {value!s}; only Daily, Weekly, Monthly and Yearly recur"
        raise ValidationError(msg) from e


def occurrence_date(range_start: date, cadence: Cadence, index: int) -> date:
    """Start date of occurrence `index`, counted from the range start.

    Calendar steps are applied from the range start rather than chained, so a
    series starting on the 31st lands on the last day of short months and
    returns to the 31st afterwards.
    """
    return range_start + CADENCE_STEPS[cadence] * index


def occurrence_count(cadence: Cadence | Frequency | str, range_start: date, range_end: date) -> int:
    """Number of occurrences between range_start and range_end inclusive, in closed form."""
    cadence = to_cadence(cadence)
    if range_start > range_end:
        return 0

    days = (range_end - range_start).days
    if cadence == Cadence.DAILY:
        return days + 1
    if cadence == Cadence.WEEKLY:
        return days // 7 + 1

    if cadence == Cadence.MONTHLY:
        steps = (range_end.year - range_start.year) * 12 + (range_end.month - range_start.month)
    else:
        steps = range_end.year - range_start.year

    # The calendar difference can overshoot by one when the end day precedes the start day
    if occurrence_date(range_start, cadence, steps) > range_end:
        steps -= 1
    return steps + 1


def expand(
    template: TaskCreate,
    cadence: Cadence | Frequency | str,
    range_start: date,
    range_end: date,
) -> list[TaskCreate]:
    """Create one task payload per occurrence of the cadence within the range.

    Each occurrence starts on its occurrence date and is due on the next
    occurrence date. All other fields are copied from the template.

    Args:
        template: Fields shared by every occurrence
        cadence: Daily, Weekly, Monthly or Yearly
        range_start: First occurrence
        range_end: Inclusive bound on occurrence start dates

    Returns:
        Task payloads in date order; empty when range_start is after range_end

    Raises:
        ValidationError: The cadence is Adhoc or unknown
    """
    cadence = to_cadence(cadence)

    instances: list[TaskCreate] = []
    index = 0
    start = occurrence_date(range_start, cadence, index)
    while start <= range_end:
        due = occurrence_date(range_start, cadence, index + 1)
        instances.append(template.model_copy(update={"start_date": start, "due_date": due}))
        index += 1
        start = due
    return instances
