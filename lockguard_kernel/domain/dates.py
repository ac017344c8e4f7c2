"""
Calendar-date normalization for lock checks.

Responsibility:
    Turns whatever a caller hands the gates (a ``date``, a ``datetime``, or
    an ISO-8601 string from a form or a sync payload) into a plain calendar
    ``date``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Calendar-date strings are LOCAL dates.  ``"2025-06-30"`` is June 30
      everywhere; it is never interpreted as midnight UTC and shifted into
      June 29 by a western timezone.
    - A ``datetime`` keeps its own wall-clock day.  No timezone conversion
      is applied, so ``2025-06-30T23:30:00-07:00`` stays June 30.
    - ``datetime`` is checked before ``date`` (it is a subclass).

Failure modes:
    - InvalidTransactionDateError for anything that is not a calendar date.
"""

from datetime import date, datetime

from lockguard_kernel.exceptions import InvalidTransactionDateError

DateInput = date | datetime | str


def to_calendar_date(value: DateInput) -> date:
    """
    Normalize ``value`` to a calendar day.

    Args:
        value: A date, a datetime, or an ISO-8601 date / datetime string.

    Returns:
        The calendar ``date`` the value names.

    Raises:
        InvalidTransactionDateError: If ``value`` is empty, of an unsupported
            type, or not a valid ISO-8601 date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return _parse_local_date(value)
    raise InvalidTransactionDateError(value)


def _parse_local_date(text: str) -> date:
    raw = text.strip()
    if not raw:
        raise InvalidTransactionDateError(text)

    # Plain calendar date: the common form/sync case
    if len(raw) == 10:
        try:
            return date.fromisoformat(raw)
        except ValueError:
            raise InvalidTransactionDateError(text) from None

    # Timestamp: keep the wall-clock day it was written with
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidTransactionDateError(text) from None
