"""Formula catalog and evaluation API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from kidneycalc.schemas.base import FormulaCategory
from kidneycalc.schemas.formula import (
    EvalErrorResponse,
    EvaluateRequest,
    EvaluationResponse,
    FormulaDetail,
    FormulaListResponse,
    FormulaSummary,
)
from kidneycalc.services.evaluator import FormulaEvaluator, get_formula_evaluator
from kidneycalc.services.models import EvalError, UnknownFormulaError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/formulas", tags=["Formulas"])

Evaluator = Annotated[FormulaEvaluator, Depends(get_formula_evaluator)]


def _not_found(error: UnknownFormulaError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


@router.get(
    "",
    response_model=FormulaListResponse,
    summary="List formulas",
    description="List catalog formulas in display order, optionally filtered by category.",
)
async def list_formulas(
    evaluator: Evaluator,
    category: FormulaCategory | None = Query(None, description="Only formulas in this category"),
) -> FormulaListResponse:
    specs = evaluator.list_formulas(category)
    return FormulaListResponse(
        formulas=[FormulaSummary.from_spec(spec) for spec in specs],
        total_count=len(specs),
    )


@router.get(
    "/categories",
    response_model=list[FormulaCategory],
    summary="List formula categories",
)
async def list_categories(evaluator: Evaluator) -> list[FormulaCategory]:
    return evaluator.categories()


@router.get(
    "/{formula_id}",
    response_model=FormulaDetail,
    summary="Get formula details",
    description="Equation, references, declared inputs and classification tables of a formula.",
)
async def get_formula(formula_id: str, evaluator: Evaluator) -> FormulaDetail:
    try:
        spec = evaluator.get_formula(formula_id)
    except UnknownFormulaError as e:
        raise _not_found(e)
    return FormulaDetail.from_spec(spec)


@router.post(
    "/{formula_id}/evaluate",
    response_model=EvaluationResponse,
    summary="Evaluate a formula",
    description="Parse raw text inputs, evaluate the formula and classify its outputs.",
    responses={
        404: {"description": "Unknown formula"},
        422: {"description": "Missing or invalid input, or domain violation"},
    },
)
async def evaluate_formula(
    formula_id: str,
    request: EvaluateRequest,
    evaluator: Evaluator,
) -> EvaluationResponse:
    """Evaluate a formula.

    Missing or unparseable inputs and violated preconditions are expected
    outcomes and are returned as 422 with ``{"kind", "field", "reason"}``.

    Raises:
        HTTPException: 404 if the formula is unknown, 422 on EvalError.
    """
    try:
        result = evaluator.evaluate(formula_id, request.inputs)
    except UnknownFormulaError as e:
        raise _not_found(e)

    if isinstance(result, EvalError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=EvalErrorResponse.from_error(result).model_dump(mode="json"),
        )

    return EvaluationResponse.from_result(result)
