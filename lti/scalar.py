"""
Scalar kinds and root matching.

Every coefficient and root handled by the library is either a plain number
(float/complex) or a sympy expression carrying free symbols. The two cases are
modelled as two kinds sharing one interface, and polynomial operations are
routed through the kind of their operands.
"""

import numpy as np
import sympy as sp

from lti.exceptions import RootFindingError

s = sp.Symbol("s")


def _is_symbolic_value(value):
    return isinstance(value, sp.Basic) and bool(value.free_symbols)


def _exact(value):
    # Integral floats map to sympy Integers
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return sp.Integer(int(value))
    return sp.sympify(value)


def _to_number(value):
    c = complex(value)
    return c.real if c.imag == 0 else c


class NumericKind:
    """Floating point coefficients, backed by numpy."""

    name = "numeric"
    is_symbolic = False

    def normalize(self, coeffs):
        arr = np.array([complex(c) for c in coeffs], dtype=complex)
        if not np.any(arr.imag):
            arr = arr.real
        arr = np.trim_zeros(arr, "f")
        if arr.size == 0:
            arr = np.zeros(1)
        return arr

    def approx_equal(self, a, b, tol):
        return bool(abs(complex(a) - complex(b)) < tol)

    def is_zero(self, coeffs):
        return bool(np.all(coeffs == 0))

    def is_zero_value(self, value):
        return value == 0

    def simplify(self, value):
        return value

    def add(self, a, b):
        return np.polyadd(a, b)

    def sub(self, a, b):
        return np.polysub(a, b)

    def mul(self, a, b):
        return np.polymul(a, b)

    def divmod(self, a, b):
        return np.polydiv(a, b)

    def derivative(self, a, m):
        return np.polyder(a, m)

    def roots(self, a):
        return tuple(np.roots(a).tolist())

    def from_roots(self, roots):
        return np.atleast_1d(np.poly([complex(r) for r in roots]))

    def evaluate(self, a, x):
        value = np.polyval(a, x)
        return value.item() if isinstance(value, np.generic) else value


class SymbolicKind:
    """Coefficients containing sympy symbols, manipulated as sympy Poly objects in s."""

    name = "symbolic"
    is_symbolic = True

    def normalize(self, coeffs):
        coeffs = [_exact(c) for c in coeffs]
        while len(coeffs) > 1 and coeffs[0].is_zero is True:
            coeffs = coeffs[1:]
        return tuple(coeffs) if coeffs else (sp.Integer(0),)

    def approx_equal(self, a, b, tol):
        # Exact match only, tol has no meaning for symbols
        return sp.simplify(sp.sympify(a) - sp.sympify(b)).is_zero is True

    def is_zero(self, coeffs):
        return all(sp.simplify(c).is_zero is True for c in coeffs)

    def is_zero_value(self, value):
        return sp.simplify(value).is_zero is True

    def simplify(self, value):
        return sp.simplify(value)

    def _poly(self, coeffs):
        return sp.Poly(list(coeffs), s)

    def add(self, a, b):
        return tuple((self._poly(a) + self._poly(b)).all_coeffs())

    def sub(self, a, b):
        return tuple((self._poly(a) - self._poly(b)).all_coeffs())

    def mul(self, a, b):
        return tuple((self._poly(a) * self._poly(b)).all_coeffs())

    def divmod(self, a, b):
        q, r = sp.div(self._poly(a), self._poly(b))
        return tuple(q.all_coeffs()), tuple(r.all_coeffs())

    def derivative(self, a, m):
        return tuple(self._poly(a).diff((s, m)).all_coeffs())

    def roots(self, a):
        poly = self._poly(a)
        found = sp.roots(poly)
        if sum(found.values()) != poly.degree():
            raise RootFindingError(
                f"Could not find all {poly.degree()} roots of {poly.as_expr()}"
            )
        result = []
        for root, multiplicity in found.items():
            result.extend([root] * multiplicity)
        return tuple(result)

    def from_roots(self, roots):
        return tuple(sp.Poly(sp.prod([s - _exact(r) for r in roots]), s).all_coeffs())

    def evaluate(self, a, x):
        acc = sp.Integer(0)
        for c in a:
            acc = acc * x + c
        return sp.expand(acc)


NUMERIC = NumericKind()
SYMBOLIC = SymbolicKind()


def kind_of(values):
    """Returns SYMBOLIC if any value carries free symbols, else NUMERIC."""
    if isinstance(values, np.ndarray) and values.dtype != object:
        return NUMERIC
    for v in values:
        if _is_symbolic_value(v):
            return SYMBOLIC
    return NUMERIC


def promote(*kinds):
    return SYMBOLIC if any(k.is_symbolic for k in kinds) else NUMERIC


def approx_equal(a, b, tol=1e-3):
    """
    True if two scalars match: |a - b| < tol for numbers, structural equality
    after simplification for symbolic expressions.
    """
    return kind_of((a, b)).approx_equal(a, b, tol)


def approx_equal_any(a, values, tol=1e-3):
    """Element-wise approx_equal of `a` against every entry of `values`."""
    return [approx_equal(a, v, tol) for v in values]


def group_repeated(values, tol=1e-3):
    """
    Reorders values so that tolerance-equal entries sit next to each other.

    The first occurrence of each cluster fixes the cluster's position, and the
    relative order inside a cluster is kept.
    """
    groups = []
    for v in values:
        for g in groups:
            if approx_equal(g[0], v, tol):
                g.append(v)
                break
        else:
            groups.append([v])
    return [v for g in groups for v in g]


def as_number(value):
    """Converts a numeric scalar (including sympy numbers) to float or complex."""
    if _is_symbolic_value(value):
        raise TypeError(f"{value} is symbolic and has no numeric value")
    return _to_number(value)
