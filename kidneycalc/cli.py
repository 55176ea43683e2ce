"""
KidneyCalc - Command Line Interface

Usage:
    kidneycalc list                              # List all formulas
    kidneycalc list --category Acid-Base         # List one category
    kidneycalc show anion_gap                    # Inputs, equation, references
    kidneycalc eval corrected_calcium calcium=7.6 albumin=2.0
    kidneycalc eval acid_base ph=7.2 bicarbonate=10 pco2=25 --json
"""

import argparse
import logging
import sys
from collections.abc import Sequence

from kidneycalc.core.config import settings
from kidneycalc.schemas.base import FormulaCategory
from kidneycalc.schemas.formula import EvalErrorResponse, EvaluationResponse, InputFieldInfo
from kidneycalc.services.evaluator import FormulaEvaluator, get_formula_evaluator
from kidneycalc.services.models import EvalError, EvaluationResult, UnknownFormulaError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNKNOWN_FORMULA = 1
EXIT_EVAL_ERROR = 2

# ============================================================================
# Display Functions
# ============================================================================


class Colors:
    """ANSI color codes for terminal output."""
    BOLD = '\033[1m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    GRAY = '\033[90m'
    END = '\033[0m'


def _style(text: str, *codes: str) -> str:
    if not sys.stdout.isatty():
        return text
    return "".join(codes) + text + Colors.END


def print_header(text: str, char: str = "="):
    """Print a formatted header."""
    width = 60
    print(_style(char * width, Colors.BOLD, Colors.CYAN))
    print(_style(text, Colors.BOLD, Colors.CYAN))
    print(_style(char * width, Colors.BOLD, Colors.CYAN))


def format_number(value: float, precision: int | None = None) -> str:
    digits = settings.display_precision if precision is None else precision
    return f"{value:.{digits}f}"


def print_result(result: EvaluationResult):
    """Print outputs, findings, violations and notes."""
    for out in result.outputs:
        line = f"  {out.label}: {format_number(out.value)}"
        if out.unit:
            line += f" {out.unit}"
        if out.classification:
            line += "  " + _style(f"[{out.classification}]", Colors.GREEN)
        print(line)

    for name, finding in result.findings.items():
        print(f"  {name.replace('_', ' ').capitalize()}: " + _style(finding, Colors.BOLD))

    for violation in result.violations:
        print(_style(f"  {violation.field}: not computed ({violation.reason})", Colors.YELLOW))

    if result.notes:
        print()
        for note in result.notes:
            print(_style(f"  • {note}", Colors.GRAY))


def print_error(error: EvalError):
    field = f" [{error.field}]" if error.field else ""
    print(_style(f"{error.kind.value}{field}: {error.reason}", Colors.RED), file=sys.stderr)


# ============================================================================
# Commands
# ============================================================================


def parse_assignments(assignments: Sequence[str]) -> dict[str, str]:
    """Turn ``name=value`` arguments into a raw input mapping.

    Raises:
        ValueError: If an argument has no ``=``.
    """
    raw: dict[str, str] = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Expected name=value, got {item!r}")
        raw[name.strip()] = value
    return raw


def cmd_list(evaluator: FormulaEvaluator, args: argparse.Namespace) -> int:
    category = FormulaCategory(args.category) if args.category else None
    specs = evaluator.list_formulas(category)
    for cat in evaluator.categories():
        group = [spec for spec in specs if spec.category == cat]
        if not group:
            continue
        print(_style(cat.value, Colors.BOLD, Colors.YELLOW))
        for spec in group:
            print(f"  {spec.id:<22} {spec.name}")
    return EXIT_OK


def cmd_show(evaluator: FormulaEvaluator, args: argparse.Namespace) -> int:
    spec = evaluator.get_formula(args.formula)
    print_header(spec.name)
    print(spec.description)
    print()
    print(spec.equation)
    print()
    print("Inputs:")
    for field in spec.inputs:
        info = InputFieldInfo.from_field(field)
        parts = [f"  {info.name}"]
        if info.unit:
            parts.append(f"({info.unit})")
        if info.choices:
            parts.append(f"one of: {', '.join(info.choices)}")
        if info.units:
            parts.append(f"units via {info.unit_field}: {', '.join(info.units)}")
        if info.default is not None:
            parts.append(f"default {info.default}")
        elif not info.required:
            parts.append("optional")
        print(" ".join(parts))
    if spec.references:
        print()
        print("References:")
        for reference in spec.references:
            print(f"  - {reference}")
    return EXIT_OK


def cmd_eval(evaluator: FormulaEvaluator, args: argparse.Namespace) -> int:
    result = evaluator.evaluate(args.formula, args.raw_inputs)

    if isinstance(result, EvalError):
        if args.json:
            print(EvalErrorResponse.from_error(result).model_dump_json(indent=2))
        else:
            print_error(result)
        return EXIT_EVAL_ERROR

    if args.json:
        print(EvaluationResponse.from_result(result).model_dump_json(indent=2))
    else:
        print_header(evaluator.get_formula(args.formula).name)
        print_result(result)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kidneycalc",
        description="Evaluate nephrology formulas from the command line",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List formulas")
    list_parser.add_argument(
        "--category",
        choices=[c.value for c in FormulaCategory],
        help="Only list formulas in this category",
    )
    list_parser.set_defaults(handler=cmd_list)

    show_parser = subparsers.add_parser("show", help="Show formula details")
    show_parser.add_argument("formula", help="Formula identifier")
    show_parser.set_defaults(handler=cmd_show)

    eval_parser = subparsers.add_parser("eval", help="Evaluate a formula")
    eval_parser.add_argument("formula", help="Formula identifier")
    eval_parser.add_argument("inputs", nargs="*", metavar="name=value", help="Raw input values")
    eval_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    eval_parser.set_defaults(handler=cmd_eval)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    if args.command == "eval":
        try:
            args.raw_inputs = parse_assignments(args.inputs)
        except ValueError as e:
            parser.error(str(e))

    evaluator = get_formula_evaluator()
    try:
        return args.handler(evaluator, args)
    except UnknownFormulaError as e:
        print(_style(str(e), Colors.RED), file=sys.stderr)
        return EXIT_UNKNOWN_FORMULA


if __name__ == "__main__":
    sys.exit(main())
