"""API routers for KidneyCalc."""

from kidneycalc.api.favorites import router as favorites_router
from kidneycalc.api.formulas import router as formulas_router

__all__ = [
    "favorites_router",
    "formulas_router",
]
