"""Pytest configuration and fixtures for KidneyCalc tests."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from kidneycalc.main import create_app
from kidneycalc.services.evaluator import FormulaEvaluator, reset_formula_evaluator


@pytest.fixture
def evaluator() -> FormulaEvaluator:
    """Fresh evaluator over the full catalog."""
    return FormulaEvaluator()


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset singletons between tests."""
    reset_formula_evaluator()
    yield
    reset_formula_evaluator()


@pytest.fixture
def app() -> FastAPI:
    """Application instance with its own favorites store."""
    return create_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
