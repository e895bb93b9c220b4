"""
Domain types for the cross-company cost allocation engine.

Entities read from the collaborators (companies, chart of accounts, ledger,
lump sums, employee months) are frozen. Everything the engine computes is
returned as a new value, never written back onto an entity.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Tuple


class StatusType(str, Enum):
    ACTIVE = 'ACTIVE'
    PREBOARDING = 'PREBOARDING'
    MATERNITY_LEAVE = 'MATERNITY_LEAVE'
    PAID_LEAVE = 'PAID_LEAVE'
    NON_PAY_LEAVE = 'NON_PAY_LEAVE'
    TERMINATED = 'TERMINATED'


class ConsultantType(str, Enum):
    CONSULTANT = 'CONSULTANT'
    STAFF = 'STAFF'
    STUDENT = 'STUDENT'
    EXTERNAL = 'EXTERNAL'


class OutputMode(str, Enum):
    """Which number the engine produces for a (account, month)."""
    LEDGER = 'ledger'
    ADJUSTED_SUM = 'adjusted_sum'


class ConsultantCountMode(str, Enum):
    """How headcount and salary are read from the employee-month series."""
    POINT_IN_TIME = 'point_in_time'
    PERIOD_AVERAGE = 'period_average'


class SalaryBasis(str, Enum):
    """Whose salary a secondary-owned salary account is netted against."""
    OWNER = 'owner'
    POOL = 'pool'


@dataclass(frozen=True)
class Company:
    uuid: str
    name: str


@dataclass(frozen=True)
class AccountingAccount:
    uuid: str
    company_uuid: str
    account_code: int
    description: str = ''
    shared: bool = False
    salary: bool = False


@dataclass(frozen=True)
class AccountingCategory:
    uuid: str
    account_code: str
    name: str
    accounts: Tuple[AccountingAccount, ...] = ()


@dataclass(frozen=True)
class LedgerEntry:
    company_uuid: str
    account_code: int
    expense_date: date
    amount: float


@dataclass(frozen=True)
class LumpSumCorrection:
    account_uuid: str
    registered_date: date
    amount: float


@dataclass(frozen=True)
class EmployeeMonth:
    """One employee's availability record for one calendar month."""
    user_uuid: str
    company_uuid: str
    year: int
    month: int
    status: StatusType
    consultant_type: ConsultantType
    avg_salary: float = 0.0


@dataclass(frozen=True)
class ConsultantPoolSnapshot:
    consultant_count: float = 0.0
    salary_sum: float = 0.0

    @classmethod
    def empty(cls) -> 'ConsultantPoolSnapshot':
        return cls()


@dataclass(frozen=True)
class AllocationResult:
    """
    Outcome of running one account through the allocation pipeline for one month.

    ``raw_sum`` is always the ledger sum. ``loan``/``debt`` are filled in ledger
    mode, ``adjusted_sum`` in adjusted-sum mode; the other fields stay 0.
    """
    account: AccountingAccount
    month: date
    raw_sum: float
    lump_sum: float = 0.0
    shareable: float = 0.0
    loan: float = 0.0
    debt: float = 0.0
    adjusted_sum: float = 0.0
    mode: OutputMode = OutputMode.LEDGER


@dataclass(frozen=True)
class CategoryTotals:
    category: AccountingCategory
    primary_sum: float = 0.0
    secondary_sum: float = 0.0
    adjusted_primary_sum: float = 0.0
    adjusted_secondary_sum: float = 0.0
    accounts: Tuple[AllocationResult, ...] = field(default=(), repr=False)

    @property
    def adjusted_total(self) -> float:
        return self.adjusted_primary_sum + self.adjusted_secondary_sum
