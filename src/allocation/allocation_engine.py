"""
Allocation Engine for splitting shared account costs across the company pool.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence, Tuple, Union

from .consultant_pool import ConsultantPoolAggregator
from .ledger import LedgerIndex
from .lump_sums import LumpSumResolver
from .models import (
    AccountingAccount, AccountingCategory, AllocationResult, Company,
    ConsultantPoolSnapshot, OutputMode, SalaryBasis
)

logger = logging.getLogger(__name__)

# Applied to the consultant salary sum before it is netted off a shared
# salary account.
SALARY_BUFFER_MULTIPLIER = 1.02


@dataclass(frozen=True)
class PoolContext:
    """Primary company, its secondaries and their snapshots for one month."""
    month: date
    primary: Company
    primary_snapshot: ConsultantPoolSnapshot
    secondaries: Tuple[Tuple[Company, ConsultantPoolSnapshot], ...] = ()

    @property
    def primary_consultants(self) -> float:
        return self.primary_snapshot.consultant_count

    @property
    def secondary_consultants(self) -> float:
        return sum(snapshot.consultant_count for _, snapshot in self.secondaries)

    @property
    def total_consultants(self) -> float:
        return self.primary_consultants + self.secondary_consultants

    @property
    def secondary_salary_sum(self) -> float:
        return sum(snapshot.salary_sum for _, snapshot in self.secondaries)

    def is_primary(self, company_uuid: str) -> bool:
        return company_uuid == self.primary.uuid

    def snapshot_of(self, company_uuid: str) -> Optional[ConsultantPoolSnapshot]:
        if self.is_primary(company_uuid):
            return self.primary_snapshot
        for company, snapshot in self.secondaries:
            if company.uuid == company_uuid:
                return snapshot
        return None

    def secondary_uuids(self) -> Tuple[str, ...]:
        return tuple(company.uuid for company, _ in self.secondaries)


def net_salary(partial: float, other_salary_sources: float, own_salary_sum: float,
               multiplier: float = SALARY_BUFFER_MULTIPLIER) -> float:
    """Add salary booked on dedicated accounts, then remove the buffered consultant salary."""
    partial += other_salary_sources
    return max(0.0, partial - own_salary_sum * multiplier)


def prorate(amount: float, share_count: float, total_count: float) -> float:
    if total_count <= 0:
        return 0.0
    return amount * (share_count / total_count)


def shareable_amount(account: AccountingAccount, raw_sum: float, lump_sum: float,
                     other_salary_sources: float = 0.0, own_salary_sum: float = 0.0,
                     multiplier: float = SALARY_BUFFER_MULTIPLIER) -> float:
    """
    The part of a shared account's month that is split across the pool.

    Returns 0 for non-shared accounts, for non-positive raw sums (credits are
    never shared) and when lump-sum removal or salary netting leaves nothing.
    """
    if not account.shared:
        return 0.0
    if raw_sum <= 0:
        return 0.0

    partial = raw_sum - lump_sum

    if account.salary and account.shared:
        partial = net_salary(partial, other_salary_sources, own_salary_sum, multiplier)

    if partial <= 0:
        return 0.0
    return partial


def allocate(account: AccountingAccount, month: date, owned_by_primary: bool,
             raw_sum: float, lump_sum: float,
             primary_consultants: float, secondary_consultants: float,
             other_salary_sources: float = 0.0, own_salary_sum: float = 0.0,
             mode: OutputMode = OutputMode.LEDGER,
             multiplier: float = SALARY_BUFFER_MULTIPLIER) -> AllocationResult:
    """
    Run one account-month through the adjustment pipeline.

    Ledger mode gives a ``loan`` for primary-owned shared accounts (the
    secondaries' share) and a ``debt`` for secondary-owned ones (the primary's
    share). Adjusted-sum mode gives the primary's own share in
    ``adjusted_sum``: the whole net amount for its non-shared accounts, the
    retained salary portion plus its prorated pool share for its shared
    accounts, and its prorated share of secondary-owned shared accounts.
    """
    mode = OutputMode(mode)
    total = primary_consultants + secondary_consultants
    base = raw_sum - lump_sum
    pooled = shareable_amount(account, raw_sum, lump_sum, other_salary_sources, own_salary_sum, multiplier)

    loan = debt = adjusted = 0.0

    if mode == OutputMode.LEDGER:
        if account.shared and owned_by_primary:
            loan = prorate(pooled, secondary_consultants, total)
        elif account.shared:
            debt = prorate(pooled, primary_consultants, total)
    elif owned_by_primary:
        if not account.shared:
            adjusted = base
        elif raw_sum > 0 and total > 0:
            adjusted = (base - pooled) + prorate(pooled, primary_consultants, total)
    elif account.shared:
        adjusted = prorate(pooled, primary_consultants, total)

    return AllocationResult(
        account=account,
        month=month,
        raw_sum=raw_sum,
        lump_sum=lump_sum,
        shareable=pooled if total > 0 else 0.0,
        loan=max(0.0, loan),
        debt=max(0.0, debt),
        adjusted_sum=max(0.0, adjusted),
        mode=mode
    )


class AccountAllocationEngine:
    """
    Resolves the inputs of one account-month and runs it through ``allocate``.

    Ledger sums, lump sums and pool snapshots all come from structures built
    once per report run, so evaluating an account never triggers a new read.
    """

    def __init__(self, ledger: LedgerIndex, lump_sums: LumpSumResolver,
                 pool: ConsultantPoolAggregator, config: Optional[dict] = None):
        self.ledger = ledger
        self.lump_sums = lump_sums
        self.pool = pool
        self.config = config or {}
        self.salary_buffer_multiplier = float(
            self.config.get('salary_buffer_multiplier', SALARY_BUFFER_MULTIPLIER)
        )
        self.secondary_salary_basis = SalaryBasis(
            self.config.get('secondary_salary_basis', SalaryBasis.OWNER.value)
        )

    def pool_context(self, primary: Company, secondaries: Iterable[Company], month: date) -> PoolContext:
        return PoolContext(
            month=month,
            primary=primary,
            primary_snapshot=self.pool.snapshot(primary, month),
            secondaries=tuple(self.pool.snapshots(secondaries, month))
        )

    def raw_sum(self, account: AccountingAccount, month: date) -> float:
        return self.ledger.sum_by_account_and_month(account.company_uuid, account.account_code, month)

    def salary_owners(self, account: AccountingAccount, context: PoolContext) -> Tuple[str, ...]:
        """Companies whose consultant salary and payroll accounts net against ``account``."""
        if context.is_primary(account.company_uuid):
            return (account.company_uuid,)
        if self.secondary_salary_basis == SalaryBasis.POOL:
            return context.secondary_uuids()
        return (account.company_uuid,)

    def other_salary_sources(self, account: AccountingAccount, category: AccountingCategory,
                             month: date, owners: Sequence[str]) -> float:
        """Ledger sum of the category's non-shared salary accounts held by ``owners``."""
        total = 0.0
        for other in category.accounts:
            if other.uuid == account.uuid:
                continue
            if other.company_uuid in owners and other.salary and not other.shared:
                total += self.raw_sum(other, month)
        return total

    def own_salary_sum(self, owners: Sequence[str], context: PoolContext) -> float:
        total = 0.0
        for owner in owners:
            snapshot = context.snapshot_of(owner)
            if snapshot is not None:
                total += snapshot.salary_sum
        return total

    def evaluate(self, account: AccountingAccount, category: AccountingCategory,
                 context: PoolContext, mode: Union[OutputMode, str] = OutputMode.LEDGER) -> AllocationResult:
        month = context.month
        raw_sum = self.raw_sum(account, month)
        lump_sum = self.lump_sums.lump_sum(account, month)

        other_salary = own_salary = 0.0
        if account.salary and account.shared and raw_sum > 0:
            owners = self.salary_owners(account, context)
            other_salary = self.other_salary_sources(account, category, month, owners)
            own_salary = self.own_salary_sum(owners, context)

        return allocate(
            account=account,
            month=month,
            owned_by_primary=context.is_primary(account.company_uuid),
            raw_sum=raw_sum,
            lump_sum=lump_sum,
            primary_consultants=context.primary_consultants,
            secondary_consultants=context.secondary_consultants,
            other_salary_sources=other_salary,
            own_salary_sum=own_salary,
            mode=mode,
            multiplier=self.salary_buffer_multiplier
        )
