"""Persistence models for the Period Store and the violation log."""

from lockguard_kernel.models.accounting_period import AccountingPeriod
from lockguard_kernel.models.company_settings import CompanySettings
from lockguard_kernel.models.violation import LockedPeriodViolation

__all__ = [
    "AccountingPeriod",
    "CompanySettings",
    "LockedPeriodViolation",
]
