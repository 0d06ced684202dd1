"""
Pytest configuration and shared fixtures for the sales dashboard tests.
"""

from typing import Optional

import pytest

from core.auth import AuthUser, IdentityProvider
from core.config import get_settings
from core.data import _load_dashboard_data_cached, parse_sales_records
from core.errors import AuthError


SAMPLE_CSV = """YEAR,MONTH,SUPPLIER,ITEM CODE,ITEM DESCRIPTION,ITEM TYPE,RETAIL SALES,RETAIL TRANSFERS,WAREHOUSE SALES
2019,1,ACME WINES,100009,BOOTLEG RED - 750ML,WINE,10,2,5
2019,2,REPUBLIC NATIONAL DISTRIBUTING CO,100024,MOMENT DE PLAISIR - 750ML,WINE,20.5,1,30
2020,1,ACME WINES,1001,S SMITH ORGANIC PEAR CIDER - 18.7OZ,BEER,100,0,50
2020,3,PWSWN INC,101664,RAILROAD SQUARE - 750ML,WINE,40,4,0
2020,3,,101665,NO SUPPLIER - 750ML,,5,,7
2020,,ACME WINES,9,MISSING MONTH,WINE,1,1,1
"""


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def scenario_records():
    return parse_sales_records(
        [
            {
                "YEAR": 2020,
                "MONTH": 1,
                "SUPPLIER": "Acme",
                "ITEM TYPE": "WINE",
                "RETAIL SALES": 100,
                "RETAIL TRANSFERS": 0,
                "WAREHOUSE SALES": 50,
            }
        ]
    )


class FakeIdentityProvider(IdentityProvider):
    """In-memory stand-in for the Firebase provider."""

    def __init__(self, accounts=None):
        self.accounts = accounts if accounts is not None else {}
        self._current_user: Optional[AuthUser] = None

    def register(self, email, password, display_name=None):
        if email in self.accounts:
            raise AuthError("An account with this email already exists.")
        if len(password) < 6:
            raise AuthError("Password should be at least 6 characters.")
        user = AuthUser(uid=f"uid-{len(self.accounts) + 1}", email=email, display_name=display_name)
        self.accounts[email] = (password, user)
        self._current_user = user
        return user

    def sign_in(self, email, password):
        stored = self.accounts.get(email)
        if stored is None or stored[0] != password:
            raise AuthError("Invalid email or password.")
        self._current_user = stored[1]
        return stored[1]

    def sign_out(self):
        self._current_user = None

    @property
    def current_user(self):
        return self._current_user


@pytest.fixture
def fake_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def dataset_file(tmp_path, monkeypatch):
    """Point the dashboard at a temporary CSV and reset cached settings/data."""
    path = tmp_path / "Warehouse_and_Retail_Sales.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    monkeypatch.setenv("DASHBOARD_DATA_URL", str(path))
    get_settings.cache_clear()
    _load_dashboard_data_cached.cache_clear()
    yield path
    get_settings.cache_clear()
    _load_dashboard_data_cached.cache_clear()
