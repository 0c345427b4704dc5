"""Evaluator for user supplied radial functions such as ``sin(x)`` or ``x^2``."""

from __future__ import annotations

import logging
import math
import re
from functools import lru_cache
from typing import Dict, Mapping, Optional

import sympy as sp
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

logger = logging.getLogger(__name__)

_TRANSFORMATIONS = standard_transformations + (convert_xor,)

FUNCTIONS: Dict[str, object] = {
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "sec": sp.sec,
    "csc": sp.csc,
    "cot": sp.cot,
    "asin": sp.asin,
    "acos": sp.acos,
    "atan": sp.atan,
    "sinh": sp.sinh,
    "cosh": sp.cosh,
    "tanh": sp.tanh,
    "sqrt": sp.sqrt,
    "exp": sp.exp,
    "log": sp.log,
    "abs": sp.Abs,
}

CONSTANTS: Dict[str, object] = {"pi": sp.pi, "e": sp.E}

_FUNC_X_RE = re.compile(r"^([a-z_][a-z0-9_]*)x$", re.IGNORECASE)


def normalize_expression(expression: str, variables: Mapping[str, float]) -> str:
    """Trim ``expression`` and rewrite a bare ``sinx`` into ``sin(x)``."""

    text = expression.strip()
    match = _FUNC_X_RE.match(text)
    if match and match.group(1) in FUNCTIONS and text not in variables:
        corrected = f"{match.group(1)}(x)"
        logger.warning(
            "Expression %r looks like a function call without parentheses; using %r", text, corrected
        )
        return corrected
    return text


@lru_cache(maxsize=256)
def _parse(text: str, names: tuple) -> sp.Expr:
    local_dict: Dict[str, object] = dict(FUNCTIONS)
    local_dict.update(CONSTANTS)
    for name in names:
        local_dict[name] = sp.Symbol(name)
    return parse_expr(text, local_dict=local_dict, transformations=_TRANSFORMATIONS)


def evaluate(expression: str, variables: Mapping[str, float]) -> Optional[float]:
    """Evaluate ``expression`` with ``variables`` bound.

    Returns ``None`` when the text does not parse, references unbound names,
    or produces a complex, infinite or NaN value.  Never raises.
    """

    text = normalize_expression(expression, variables)
    if not text:
        logger.warning("Empty expression")
        return None
    names = tuple(sorted(variables))
    try:
        expr = _parse(text, names)
        subs = {sp.Symbol(name): float(value) for name, value in variables.items()}
        result = float(sp.sympify(expr).evalf(subs=subs))
    except Exception as exc:
        logger.warning("Could not evaluate %r (input %r): %s", text, expression, exc)
        return None
    if not math.isfinite(result):
        logger.warning("Expression %r evaluated to non-finite value %r", text, result)
        return None
    return result


__all__ = ["CONSTANTS", "FUNCTIONS", "evaluate", "normalize_expression"]
