"""
Pytest configuration and fixtures for lab portal tests.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from labportal.formula.cache import FormulaCache
from labportal.main import app
from labportal.schemas.formula import DataTable, Formula

LAB_COLUMNS = ["Variable", "id", "Nisan 22", "Mayıs 22", "Haziran 22"]

LAB_ROWS = [
    ["İletkenlik", "v1", 374, 390, 405],
    ["Alkalinite Tayini", "v2", 170.4, 180.5, 410],
    ["Toplam Fosfor", "v3", 0.05, 0.06, 0.07],
    ["Orto Fosfat", "v4", 0.01, 0.01, 0.02],
]


@pytest.fixture
def formula_cache() -> FormulaCache:
    """Fresh parsed-formula cache per test."""
    return FormulaCache()


@pytest.fixture
def lab_table() -> DataTable:
    """Measurement table with four variables over three sampling dates."""
    return DataTable(columns=list(LAB_COLUMNS), data=[list(row) for row in LAB_ROWS])


@pytest.fixture
def conductivity_formula() -> Formula:
    return Formula(
        id="1",
        name="İletkenlik > Alkalinite",
        formula="İletkenlik > Alkalinite Tayini",
        color="#ff9900",
    )


@pytest.fixture
def phosphorus_formula() -> Formula:
    return Formula(
        id="2",
        name="Fosfor kontrolü",
        formula="Toplam Fosfor > Orto Fosfat",
        color="#00cc99",
    )


@pytest.fixture
def composite_formula() -> Formula:
    return Formula(
        id="3",
        name="Bileşik kontrol",
        formula="(İletkenlik + Toplam Fosfor) > (Orto Fosfat * 2 + Alkalinite Tayini)",
        color="#cc00ff",
    )


@pytest.fixture
def lab_formulas(
    conductivity_formula: Formula,
    phosphorus_formula: Formula,
    composite_formula: Formula,
) -> list[Formula]:
    return [conductivity_formula, phosphorus_formula, composite_formula]


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with an empty formula cache."""
    app.state.formula_cache.clear()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.state.formula_cache.clear()
