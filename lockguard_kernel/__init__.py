"""
LockGuard Kernel - accounting period lock enforcement

Guards every financially-dated record (invoices, bills, payroll, purchase
orders, change orders, SOV lines) against creation, edit, or external sync
once its date falls inside a locked accounting period:
- One pure lock evaluator shared by every caller
- Fail-open advisory gate for interactive forms
- Fail-closed enforcement gate for mutation and sync paths
- Append-only violation log for audit
"""

__version__ = "0.1.0"
