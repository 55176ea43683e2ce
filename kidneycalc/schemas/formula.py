"""Formula catalog and evaluation schemas."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from kidneycalc.schemas.base import EvalErrorKind, FormulaCategory
from kidneycalc.services.classification import RangeTable
from kidneycalc.services.models import (
    ChoiceField,
    EvalError,
    EvaluationResult,
    FormulaSpec,
    InputField,
)


class InputFieldInfo(BaseModel):
    """Description of one formula input."""

    name: str = Field(..., description="Raw input key")
    label: str = Field(..., description="Display label")
    kind: str = Field(..., description="'number' or 'choice'")
    unit: str = Field("", description="Canonical unit")
    domain: str | None = Field(None, description="Numeric domain: any, positive, non_negative")
    required: bool = Field(True, description="Whether a value must be supplied")
    default: str | None = Field(None, description="Pre-filled clinical default")
    unit_field: str | None = Field(None, description="Raw input key that selects the unit")
    units: list[str] = Field(default_factory=list, description="Accepted units, canonical first")
    choices: list[str] = Field(default_factory=list, description="Accepted choice keys")

    @classmethod
    def from_field(cls, field: InputField | ChoiceField) -> "InputFieldInfo":
        if isinstance(field, ChoiceField):
            return cls(
                name=field.name,
                label=field.label,
                kind="choice",
                required=field.default is None,
                default=field.default,
                choices=field.choices,
            )
        return cls(
            name=field.name,
            label=field.label,
            kind="number",
            unit=field.unit,
            domain=field.domain.value,
            required=field.required and field.default is None,
            default=f"{field.default:g}" if field.default is not None else None,
            unit_field=field.unit_field if field.unit_options else None,
            units=[option.label for option in field.unit_options],
        )


class ClassificationTableInfo(BaseModel):
    """Ordered first-match classification table."""

    name: str
    rules: list[dict[str, str | None]]

    @classmethod
    def from_table(cls, table: RangeTable) -> "ClassificationTableInfo":
        return cls(name=table.name, rules=table.describe())


class FormulaSummary(BaseModel):
    """Catalog entry."""

    id: str = Field(..., description="Formula identifier")
    name: str = Field(..., description="Display name")
    category: FormulaCategory = Field(..., description="Catalog category")
    description: str = Field(..., description="What the formula does")

    @classmethod
    def from_spec(cls, spec: FormulaSpec) -> "FormulaSummary":
        return cls(id=spec.id, name=spec.name, category=spec.category, description=spec.description)


class FormulaDetail(FormulaSummary):
    """Full formula descriptor."""

    equation: str = Field(..., description="Display equation")
    variables: list[str] = Field(default_factory=list, description="Named variables with units")
    references: list[str] = Field(default_factory=list, description="Bibliographic references")
    inputs: list[InputFieldInfo] = Field(default_factory=list, description="Declared inputs in order")
    classifications: list[ClassificationTableInfo] = Field(
        default_factory=list, description="Classification tables applied to outputs"
    )

    @classmethod
    def from_spec(cls, spec: FormulaSpec) -> "FormulaDetail":
        return cls(
            id=spec.id,
            name=spec.name,
            category=spec.category,
            description=spec.description,
            equation=spec.equation,
            variables=list(spec.variables),
            references=list(spec.references),
            inputs=[InputFieldInfo.from_field(field) for field in spec.inputs],
            classifications=[ClassificationTableInfo.from_table(table) for table in spec.tables],
        )


class FormulaListResponse(BaseModel):
    """Response listing catalog formulas."""

    formulas: list[FormulaSummary] = Field(..., description="Formulas in display order")
    total_count: int = Field(..., description="Number of formulas returned")


class EvaluateRequest(BaseModel):
    """Request body for formula evaluation."""

    inputs: dict[str, str] = Field(
        default_factory=dict,
        description="Raw input text keyed by field name; numbers are accepted and treated as text",
    )

    @field_validator("inputs", mode="before")
    @classmethod
    def stringify_values(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: v if isinstance(v, str) else str(v) for k, v in value.items() if v is not None}
        return value


class EvalErrorResponse(BaseModel):
    """Recoverable evaluation error."""

    kind: EvalErrorKind = Field(..., description="missing_or_invalid_input or domain_violation")
    field: str | None = Field(None, description="Offending field, if any")
    reason: str = Field(..., description="Human-readable reason")

    @classmethod
    def from_error(cls, error: EvalError) -> "EvalErrorResponse":
        return cls(kind=error.kind, field=error.field, reason=error.reason)


class OutputValueResponse(BaseModel):
    """One numeric output."""

    name: str
    label: str
    value: float
    unit: str = ""
    classification: str | None = Field(None, description="Categorical label")
    classification_detail: str | None = Field(None, description="Severity or explanation")


class EvaluationResponse(BaseModel):
    """Response from formula evaluation."""

    formula_id: str = Field(..., description="Evaluated formula")
    outputs: list[OutputValueResponse] = Field(..., description="Outputs in order")
    findings: dict[str, str] = Field(default_factory=dict, description="Named categorical conclusions")
    notes: list[str] = Field(default_factory=list, description="Interpretation notes")
    violations: list[EvalErrorResponse] = Field(
        default_factory=list, description="Outputs that could not be computed"
    )
    inputs_used: dict[str, Any] = Field(default_factory=dict, description="Parsed and converted inputs")

    @classmethod
    def from_result(cls, result: EvaluationResult) -> "EvaluationResponse":
        outputs = [
            OutputValueResponse(
                name=out.name,
                label=out.label,
                value=out.value,
                unit=out.unit,
                classification=out.classification.label if out.classification else None,
                classification_detail=out.classification.detail if out.classification else None,
            )
            for out in result.outputs
        ]
        return cls(
            formula_id=result.formula_id,
            outputs=outputs,
            findings=dict(result.findings),
            notes=list(result.notes),
            violations=[EvalErrorResponse.from_error(v) for v in result.violations],
            inputs_used=dict(result.inputs_used),
        )


class FavoritesResponse(BaseModel):
    """Current favorite formulas."""

    favorites: list[str] = Field(..., description="Favorite formula identifiers in insertion order")


class FavoriteToggleResponse(BaseModel):
    """Result of toggling a favorite."""

    formula_id: str
    is_favorite: bool
