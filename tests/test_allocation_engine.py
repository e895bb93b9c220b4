from datetime import date

import pytest

from src.allocation.allocation_engine import (
    AccountAllocationEngine, allocate, net_salary, prorate, shareable_amount
)
from src.allocation.consultant_pool import ConsultantPoolAggregator
from src.allocation.ledger import LedgerIndex
from src.allocation.lump_sums import LumpSumResolver
from src.allocation.models import AccountingAccount, AccountingCategory, OutputMode

from .conftest import (
    B_SALARY_OWN, B_SALARY_SHARED, COMPANY_A, COMPANY_B, COMPANY_C, OCT,
    SALARIES, employee, ledger_frame
)

SHARED_SALARY = AccountingAccount('s', 'a', 3502, shared=True, salary=True)
SHARED = AccountingAccount('r', 'a', 6010, shared=True)
PLAIN_SALARY = AccountingAccount('p', 'a', 3510, salary=True)


def test_salary_netting_adds_other_sources_before_buffered_salary():
    assert net_salary(95000, 20000, 30000) == pytest.approx(84400)
    assert net_salary(1000, 0, 30000) == 0.0
    assert net_salary(1000, 0, 500, multiplier=1.0) == 500.0


def test_prorate_with_empty_pool_is_zero():
    assert prorate(1000, 3, 0) == 0.0
    assert prorate(1000, 2, 5) == pytest.approx(400)


def test_shareable_amount_only_for_shared_accounts():
    assert shareable_amount(PLAIN_SALARY, 50000, 0) == 0.0
    assert shareable_amount(SHARED, 9000, 1000) == 8000.0


def test_salary_account_with_large_buffer():
    # Loan is computed after subtracting salary, and the result can reach 0
    assert shareable_amount(SHARED_SALARY, 10000, 0, 0, 20000) == 0.0


def test_primary_shared_salary_account_loan():
    result = allocate(
        SHARED_SALARY, OCT, owned_by_primary=True,
        raw_sum=100000, lump_sum=5000,
        primary_consultants=5, secondary_consultants=5,
        other_salary_sources=20000, own_salary_sum=30000
    )

    assert result.shareable == pytest.approx(84400)
    assert result.loan == pytest.approx(42200)
    assert result.debt == 0.0
    assert result.raw_sum == 100000


@pytest.mark.parametrize('owned_by_primary', [True, False])
@pytest.mark.parametrize('mode', [OutputMode.LEDGER, OutputMode.ADJUSTED_SUM])
def test_credit_month_contributes_nothing_but_keeps_raw_sum(owned_by_primary, mode):
    result = allocate(
        SHARED_SALARY, OCT, owned_by_primary=owned_by_primary,
        raw_sum=-500, lump_sum=5000,
        primary_consultants=5, secondary_consultants=5,
        other_salary_sources=20000, own_salary_sum=30000,
        mode=mode
    )

    assert result.loan == 0.0
    assert result.debt == 0.0
    assert result.adjusted_sum == 0.0
    assert result.shareable == 0.0
    assert result.raw_sum == -500


def test_non_shared_salary_account_is_not_netted():
    result = allocate(
        PLAIN_SALARY, OCT, owned_by_primary=True,
        raw_sum=50000, lump_sum=0,
        primary_consultants=3, secondary_consultants=2,
        other_salary_sources=20000, own_salary_sum=30000,
        mode=OutputMode.ADJUSTED_SUM
    )

    assert result.adjusted_sum == 50000
    assert result.loan == 0.0


def test_shared_non_salary_account_loan():
    result = allocate(
        SHARED, OCT, owned_by_primary=True,
        raw_sum=9000, lump_sum=1000,
        primary_consultants=3, secondary_consultants=2
    )
    assert result.loan == pytest.approx(3200)


def test_primary_and_secondary_shares_are_reciprocal():
    kwargs = dict(raw_sum=9000, lump_sum=1000, primary_consultants=3, secondary_consultants=2)
    owned = allocate(SHARED, OCT, owned_by_primary=True, **kwargs)
    foreign = allocate(SHARED, OCT, owned_by_primary=False, **kwargs)

    # Primary-owned uses the secondary share, secondary-owned the primary share
    assert owned.loan == pytest.approx(8000 * 2 / 5)
    assert foreign.debt == pytest.approx(8000 * 3 / 5)
    assert owned.debt == 0.0 and foreign.loan == 0.0


def test_empty_pool_allocates_nothing():
    result = allocate(SHARED, OCT, True, raw_sum=9000, lump_sum=0,
                      primary_consultants=0, secondary_consultants=0)
    assert result.loan == 0.0
    assert result.shareable == 0.0
    assert result.raw_sum == 9000

    adjusted = allocate(SHARED, OCT, True, raw_sum=9000, lump_sum=0,
                        primary_consultants=0, secondary_consultants=0,
                        mode='adjusted_sum')
    assert adjusted.adjusted_sum == 0.0


@pytest.mark.parametrize('account', [SHARED, SHARED_SALARY])
def test_primary_alone_in_the_pool_lends_nothing(account):
    ledger = allocate(account, OCT, True, raw_sum=9000, lump_sum=1000,
                      primary_consultants=3, secondary_consultants=0)
    adjusted = allocate(account, OCT, True, raw_sum=9000, lump_sum=1000,
                        primary_consultants=3, secondary_consultants=0,
                        mode=OutputMode.ADJUSTED_SUM)

    assert ledger.loan == 0.0
    assert ledger.shareable == pytest.approx(8000)
    assert adjusted.adjusted_sum == pytest.approx(8000)


def test_lump_sum_larger_than_raw_clamps_to_zero():
    result = allocate(SHARED, OCT, True, raw_sum=500, lump_sum=800,
                      primary_consultants=3, secondary_consultants=2)
    assert result.loan == 0.0

    adjusted = allocate(PLAIN_SALARY, OCT, True, raw_sum=500, lump_sum=800,
                        primary_consultants=3, secondary_consultants=2,
                        mode=OutputMode.ADJUSTED_SUM)
    assert adjusted.adjusted_sum == 0.0


@pytest.mark.parametrize('raw_sum, lump_sum, other, own', [
    (100000, 5000, 20000, 30000),
    (9000, 1000, 0, 0),
    (40000, 0, 5000, 16000),
])
def test_primary_adjusted_share_and_loan_cover_the_net_amount(raw_sum, lump_sum, other, own):
    common = dict(raw_sum=raw_sum, lump_sum=lump_sum, primary_consultants=3, secondary_consultants=2,
                  other_salary_sources=other, own_salary_sum=own)
    ledger = allocate(SHARED_SALARY, OCT, True, **common)
    adjusted = allocate(SHARED_SALARY, OCT, True, mode=OutputMode.ADJUSTED_SUM, **common)

    assert ledger.loan <= ledger.shareable
    assert adjusted.adjusted_sum + ledger.loan == pytest.approx(raw_sum - lump_sum)


def test_secondary_non_shared_accounts_never_contribute():
    account = AccountingAccount('x', 'b', 6300)
    result = allocate(account, OCT, False, raw_sum=1000, lump_sum=0,
                      primary_consultants=3, secondary_consultants=2, mode=OutputMode.ADJUSTED_SUM)
    assert result.adjusted_sum == 0.0
    assert result.debt == 0.0


@pytest.fixture
def salary_group():
    c_salary = AccountingAccount('acc-c-3510', 'c', 3510, salary=True)
    category = AccountingCategory('cat', '3500', 'Salaries', SALARIES.accounts + (c_salary,))
    ledger = LedgerIndex(ledger_frame([
        ('b', 3502, '2024-10-10', 40000.0),
        ('b', 3510, '2024-10-10', 5000.0),
        ('c', 3510, '2024-10-10', 3000.0),
    ]))
    pool = ConsultantPoolAggregator([
        employee('u1', 'a'), employee('u2', 'a'), employee('u3', 'a'),
        employee('u4', 'b', salary=8000.0), employee('u5', 'b', salary=8000.0),
        employee('u6', 'c', salary=4000.0),
    ])
    return category, ledger, pool


def test_secondary_salary_account_nets_against_its_owner(salary_group):
    category, ledger, pool = salary_group
    engine = AccountAllocationEngine(ledger, LumpSumResolver(), pool)
    context = engine.pool_context(COMPANY_A, [COMPANY_B, COMPANY_C], OCT)

    assert engine.salary_owners(B_SALARY_SHARED, context) == ('b',)
    assert engine.other_salary_sources(B_SALARY_SHARED, category, OCT, ('b',)) == 5000.0

    result = engine.evaluate(B_SALARY_SHARED, category, context)
    # 40000 + 5000 - 16000 * 1.02
    assert result.shareable == pytest.approx(28680)
    assert result.debt == pytest.approx(28680 * 3 / 6)


def test_pool_salary_basis_nets_against_every_secondary(salary_group):
    category, ledger, pool = salary_group
    engine = AccountAllocationEngine(ledger, LumpSumResolver(), pool, {'secondary_salary_basis': 'pool'})
    context = engine.pool_context(COMPANY_A, [COMPANY_B, COMPANY_C], OCT)

    assert engine.salary_owners(B_SALARY_SHARED, context) == ('b', 'c')
    assert engine.own_salary_sum(('b', 'c'), context) == 20000.0

    result = engine.evaluate(B_SALARY_SHARED, category, context)
    # 40000 + 8000 - 20000 * 1.02
    assert result.shareable == pytest.approx(27600)
    assert result.debt == pytest.approx(13800)


def test_primary_salary_account_always_nets_against_primary(salary_group):
    category, ledger, pool = salary_group
    engine = AccountAllocationEngine(ledger, LumpSumResolver(), pool, {'secondary_salary_basis': 'pool'})
    context = engine.pool_context(COMPANY_A, [COMPANY_B, COMPANY_C], OCT)

    assert engine.salary_owners(SALARIES.accounts[0], context) == ('a',)


def test_configured_multiplier_is_used(salary_group):
    category, ledger, pool = salary_group
    engine = AccountAllocationEngine(ledger, LumpSumResolver(), pool, {'salary_buffer_multiplier': 1.0})
    context = engine.pool_context(COMPANY_A, [COMPANY_B, COMPANY_C], OCT)

    assert engine.evaluate(B_SALARY_SHARED, category, context).shareable == pytest.approx(29000)


def test_pool_context_totals(salary_group):
    _, ledger, pool = salary_group
    engine = AccountAllocationEngine(ledger, LumpSumResolver(), pool)
    context = engine.pool_context(COMPANY_B, [COMPANY_A, COMPANY_C], OCT)

    assert context.primary_consultants == 2.0
    assert context.secondary_consultants == 4.0
    assert context.total_consultants == 6.0
    assert context.secondary_salary_sum == 34000.0
    assert context.snapshot_of('missing') is None
    assert context.secondary_uuids() == ('a', 'c')


def test_other_salary_sources_skip_the_account_and_shared_accounts(salary_group):
    category, ledger, pool = salary_group
    engine = AccountAllocationEngine(ledger, LumpSumResolver(), pool)

    assert engine.other_salary_sources(B_SALARY_OWN, category, OCT, ('b',)) == 0.0
    assert engine.raw_sum(B_SALARY_OWN, date(2024, 10, 18)) == 5000.0
