"""
Accounting cutover classification.

A company that migrates its books into this system records the cutover date.
Transactions dated strictly before it are "legacy": their system of record is
the previous ledger.  Classification is advisory and never blocks a write.
"""

from datetime import date

from lockguard_kernel.domain.dates import DateInput, to_calendar_date


def is_legacy(value: DateInput, cutover_date: date | None) -> bool:
    """True if ``value`` predates the cutover.  No cutover, nothing is legacy."""
    if cutover_date is None:
        return False
    return to_calendar_date(value) < cutover_date
