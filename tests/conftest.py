"""
Shared fixtures: a three-company group with one primary (A) and two
secondaries (B, C), a salary category and a premises category.

October 2024 headcount: A has 3 consultants at 10 000, B has 2 at 8 000,
C has none. A terminated consultant and a staff member at A never count.
"""

from datetime import date

import pandas as pd
import pytest

from src.allocation.consultant_pool import employee_months_to_frame
from src.allocation.ledger import LedgerIndex
from src.allocation.lump_sums import LumpSumResolver
from src.allocation.models import (
    AccountingAccount, AccountingCategory, Company, ConsultantType,
    EmployeeMonth, LumpSumCorrection, StatusType
)
from src.allocation.periods import MonthPeriod
from src.allocation.registry import ChartOfAccounts, CompanyRegistry
from src.allocation.report_builder import AllocationReportBuilder

OCT = date(2024, 10, 1)
NOV = date(2024, 11, 1)

COMPANY_A = Company('a', 'Alpha')
COMPANY_B = Company('b', 'Beta')
COMPANY_C = Company('c', 'Gamma')

A_SALARY_SHARED = AccountingAccount('acc-a-3502', 'a', 3502, 'Salaries', shared=True, salary=True)
A_SALARY_OWN = AccountingAccount('acc-a-3510', 'a', 3510, 'Staff salaries', salary=True)
B_SALARY_SHARED = AccountingAccount('acc-b-3502', 'b', 3502, 'Salaries', shared=True, salary=True)
B_SALARY_OWN = AccountingAccount('acc-b-3510', 'b', 3510, 'Staff salaries', salary=True)
A_RENT_SHARED = AccountingAccount('acc-a-6010', 'a', 6010, 'Rent', shared=True)
A_OFFICE = AccountingAccount('acc-a-6300', 'a', 6300, 'Office supplies')
B_RENT_SHARED = AccountingAccount('acc-b-6010', 'b', 6010, 'Rent', shared=True)
C_OFFICE = AccountingAccount('acc-c-6020', 'c', 6020, 'Office supplies')

SALARIES = AccountingCategory(
    'cat-salaries', '3500', 'Salaries',
    (A_SALARY_SHARED, B_SALARY_SHARED, A_SALARY_OWN, B_SALARY_OWN)
)
PREMISES = AccountingCategory(
    'cat-premises', '6000', 'Premises',
    (A_RENT_SHARED, B_RENT_SHARED, C_OFFICE, A_OFFICE)
)


def employee(user, company, month=OCT, salary=10000.0,
             status=StatusType.ACTIVE, consultant_type=ConsultantType.CONSULTANT):
    return EmployeeMonth(user, company, month.year, month.month, status, consultant_type, salary)


def default_availability():
    records = []
    for month in (OCT, NOV):
        records += [
            employee('u1', 'a', month),
            employee('u2', 'a', month),
            employee('u3', 'a', month),
            employee('u4', 'a', month, status=StatusType.TERMINATED),
            employee('u5', 'a', month, consultant_type=ConsultantType.STAFF),
            employee('u6', 'b', month, salary=8000.0),
            employee('u7', 'b', month, salary=8000.0),
        ]
    return records


def ledger_frame(rows):
    return pd.DataFrame(rows, columns=['company_uuid', 'account_code', 'expense_date', 'amount'])


@pytest.fixture
def companies():
    return CompanyRegistry([COMPANY_A, COMPANY_B, COMPANY_C])


@pytest.fixture
def chart():
    return ChartOfAccounts([PREMISES, SALARIES])


@pytest.fixture
def ledger_df():
    return ledger_frame([
        ('a', 3502, '2024-10-05', 60000.0),
        ('a', 3502, '2024-10-25', 40000.0),
        ('a', 3510, '2024-10-25', 20000.0),
        ('b', 3502, '2024-10-25', 40000.0),
        ('b', 3510, '2024-10-25', 5000.0),
        ('a', 6010, '2024-10-01', 9000.0),
        ('a', 6300, '2024-10-12', 1200.0),
        ('b', 6010, '2024-10-01', 5000.0),
        ('c', 6020, '2024-10-03', 700.0),
        ('a', 6010, '2024-11-01', 4000.0),
    ])


@pytest.fixture
def corrections():
    return [
        LumpSumCorrection('acc-a-3502', date(2024, 10, 15), 5000.0),
        LumpSumCorrection('acc-a-6010', date(2024, 10, 20), 1000.0),
    ]


@pytest.fixture
def availability():
    return default_availability()


@pytest.fixture
def availability_df():
    return employee_months_to_frame(default_availability())


@pytest.fixture
def october():
    return MonthPeriod(OCT, NOV)


@pytest.fixture
def autumn():
    return MonthPeriod(OCT, date(2024, 12, 1))


@pytest.fixture
def builder(chart, companies, ledger_df, corrections, availability):
    return AllocationReportBuilder(
        chart=chart,
        companies=companies,
        ledger=LedgerIndex(ledger_df),
        lump_sums=LumpSumResolver(corrections),
        availability=availability
    )
