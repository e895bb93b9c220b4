from .allocation_engine import AccountAllocationEngine, PoolContext, SALARY_BUFFER_MULTIPLIER, allocate
from .consultant_pool import ConsultantPoolAggregator
from .errors import AllocationError, InvalidPeriodError, NotFoundError
from .ledger import LedgerIndex
from .lump_sums import LumpSumResolver
from .periods import MonthPeriod, resolve_period
from .registry import ChartOfAccounts, CompanyRegistry
from .report_builder import AllocationReportBuilder, Granularity

__all__ = [
    'AccountAllocationEngine', 'PoolContext', 'SALARY_BUFFER_MULTIPLIER', 'allocate',
    'ConsultantPoolAggregator', 'AllocationError', 'InvalidPeriodError', 'NotFoundError',
    'LedgerIndex', 'LumpSumResolver', 'MonthPeriod', 'resolve_period',
    'ChartOfAccounts', 'CompanyRegistry', 'AllocationReportBuilder', 'Granularity'
]
