"""
Read interfaces over the company registry and the chart of accounts.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .errors import NotFoundError
from .models import AccountingAccount, AccountingCategory, Company

logger = logging.getLogger(__name__)


class CompanyRegistry:
    """All companies of the group, in registration order."""

    def __init__(self, companies: Iterable[Company]):
        self._companies: Dict[str, Company] = {}
        for company in companies:
            self._companies[company.uuid] = company

    def list_companies(self) -> List[Company]:
        return list(self._companies.values())

    def find_company(self, uuid: Optional[str]) -> Company:
        if uuid is None or not str(uuid).strip():
            raise NotFoundError('company', str(uuid))
        try:
            return self._companies[uuid]
        except KeyError:
            raise NotFoundError('company', uuid) from None

    def secondaries_of(self, primary: Company) -> List[Company]:
        return [c for c in self._companies.values() if c.uuid != primary.uuid]


def _code_key(category: AccountingCategory):
    code = str(category.account_code).strip()
    return (0, int(code), code) if code.isdigit() else (1, 0, code)


class ChartOfAccounts:
    """Categories sorted by account code ascending, each owning its accounts."""

    def __init__(self, categories: Iterable[AccountingCategory]):
        self._categories = sorted(categories, key=_code_key)
        self._by_uuid = {c.uuid: c for c in self._categories}
        self._accounts = {a.uuid: a for c in self._categories for a in c.accounts}
        self._category_of = {a.uuid: c for c in self._categories for a in c.accounts}

    def list_categories(self) -> List[AccountingCategory]:
        return list(self._categories)

    def find_category(self, uuid: str) -> AccountingCategory:
        try:
            return self._by_uuid[uuid]
        except KeyError:
            raise NotFoundError('category', uuid) from None

    def find_account(self, uuid: str) -> AccountingAccount:
        try:
            return self._accounts[uuid]
        except KeyError:
            raise NotFoundError('account', uuid) from None

    def category_of(self, account: AccountingAccount) -> AccountingCategory:
        try:
            return self._category_of[account.uuid]
        except KeyError:
            raise NotFoundError('account', account.uuid) from None

    def accounts_of(self, company: Company) -> List[AccountingAccount]:
        return [a for c in self._categories for a in c.accounts if a.company_uuid == company.uuid]

    def __len__(self) -> int:
        return len(self._categories)
