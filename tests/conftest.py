"""Shared pytest fixtures for the diagnostic test suite.

Provides:
- clinic: the reference single-site clinic (85k/month, 8 staff, 12% no-shows)
- refinement: deeper-mode data for the same clinic
- client: AsyncClient bound to the FastAPI app
"""

import pytest
from httpx import ASGITransport, AsyncClient

from src.models.clinic import ClinicInput, RefinementInput


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clinic() -> ClinicInput:
    """Reference clinic used across engine and API tests."""
    return ClinicInput(
        clinic_name="Glow Aesthetics",
        monthly_revenue=85000,
        staff_count=8,
        no_show_rate=12,
        avg_treatment_value=250,
        number_of_locations=1,
    )


@pytest.fixture
def refinement() -> RefinementInput:
    """Deeper-mode inputs for the reference clinic."""
    return RefinementInput(
        staff_hourly_cost=28,
        monthly_marketing_spend=6000,
        current_inventory_value=12000,
    )


@pytest.fixture
async def client():
    """AsyncClient with dependency overrides cleared after each test."""
    from src.api.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
