"""Fixed presentation constants and the radial function catalogue."""

from __future__ import annotations

import math
from typing import List, NamedTuple

SVG_VIEWBOX_WIDTH = 800
SVG_VIEWBOX_HEIGHT = 600
INITIAL_SCALE = 50.0  # pixels per geometric unit

DEFAULT_OBJECT_COLOR = "#3b82f6"
HYPERBOLA_COLOR = "#ef4444"

HYPERBOLA_RENDER_RANGE_T = 3.0
HYPERBOLA_POINTS = 50
HYPERBOLA_MIN_CONSTANT = 1e-4

DEFAULT_DIFFERENTIAL_ARC_ANGLE = 0.1
MIN_DIFFERENTIAL_ARC_ANGLE = 0.01
MAX_DIFFERENTIAL_ARC_ANGLE = 0.5

TWO_PI = 2.0 * math.pi
UNIT_CIRCLE_LABEL = "Unit Circle"


class KnownFunction(NamedTuple):
    name: str
    expression: str


KNOWN_RADIAL_FUNCTIONS: List[KnownFunction] = [
    KnownFunction("Constant: 1", "1"),
    KnownFunction("Linear: x", "x"),
    KnownFunction("Sine: sin(x)", "sin(x)"),
    KnownFunction("Cosine: cos(x)", "cos(x)"),
    KnownFunction("Secant: sec(x)", "sec(x)"),
    KnownFunction("Tangent: tan(x)", "tan(x)"),
    KnownFunction("Cosecant: csc(x)", "csc(x)"),
    KnownFunction("Cotangent: cot(x)", "cot(x)"),
    KnownFunction("Square: x^2", "x^2"),
    KnownFunction("Cube: x^3", "x^3"),
    KnownFunction("Square Root: sqrt(x)", "sqrt(x)"),
    KnownFunction("Exponential: exp(x)", "exp(x)"),
    KnownFunction("Logarithm: log(x)", "log(x)"),
    KnownFunction("Reciprocal: 1/x", "1/x"),
]


__all__ = [
    "DEFAULT_DIFFERENTIAL_ARC_ANGLE",
    "DEFAULT_OBJECT_COLOR",
    "HYPERBOLA_COLOR",
    "HYPERBOLA_MIN_CONSTANT",
    "HYPERBOLA_POINTS",
    "HYPERBOLA_RENDER_RANGE_T",
    "INITIAL_SCALE",
    "KNOWN_RADIAL_FUNCTIONS",
    "KnownFunction",
    "MAX_DIFFERENTIAL_ARC_ANGLE",
    "MIN_DIFFERENTIAL_ARC_ANGLE",
    "SVG_VIEWBOX_HEIGHT",
    "SVG_VIEWBOX_WIDTH",
    "TWO_PI",
    "UNIT_CIRCLE_LABEL",
]
