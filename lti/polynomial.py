import numbers

import numpy as np
import sympy as sp

from lti.scalar import NUMERIC, SYMBOLIC, kind_of, promote

_SCALAR_TYPES = (numbers.Number, np.generic, sp.Basic)
_OPERAND_TYPES = _SCALAR_TYPES + (np.ndarray, list, tuple)


def _as_coefficient_list(coeffs):
    if isinstance(coeffs, Polynomial):
        return list(coeffs.coeffs)
    if isinstance(coeffs, np.ndarray):
        return list(np.atleast_1d(coeffs))
    if isinstance(coeffs, (list, tuple)):
        return list(coeffs)
    return [coeffs]


class Polynomial:
    """
    A polynomial in s (or z) stored as its coefficients, highest degree first.

    The coefficients are either all numeric (a numpy array) or, as soon as one
    of them carries a sympy symbol, all symbolic (a tuple of sympy expressions).
    Leading zero coefficients are dropped, so [0, 1, 10] is the same as [1, 10].
    The zero polynomial is stored as [0].

    Attributes:
        kind: NUMERIC or SYMBOLIC, the scalar kind the coefficients belong to.
        coeffs: The normalized coefficients.
    """

    # Lets ndarray operands defer to the reflected operators below
    __array_ufunc__ = None

    def __init__(self, coeffs, kind=None):
        values = _as_coefficient_list(coeffs)
        if kind is None:
            kind = kind_of(values)
        self.kind = kind
        self._coeffs = kind.normalize(values)

    @classmethod
    def from_roots(cls, roots, gain=1):
        """Builds gain * (s - r_1) * ... * (s - r_n)."""
        roots = list(roots)
        kind = kind_of(roots + [gain])
        poly = cls(kind.from_roots(roots), kind=kind)
        if gain == 1:
            return poly
        return poly * gain

    @property
    def coeffs(self):
        if self.kind is NUMERIC:
            return self._coeffs.copy()
        return self._coeffs

    @property
    def n(self):
        """Degree of the polynomial."""
        return len(self._coeffs) - 1

    @property
    def leading(self):
        c = self._coeffs[0]
        return c.item() if isinstance(c, np.generic) else c

    def is_zero(self):
        return self.kind.is_zero(self._coeffs)

    def roots(self):
        return self.kind.roots(self._coeffs)

    def derivative(self, m=1):
        if m == 0:
            return self
        return Polynomial(self.kind.derivative(self._coeffs, m), kind=self.kind)

    def evaluate(self, x):
        """Evaluates the polynomial at a single point by Horner's method."""
        kind = promote(self.kind, kind_of([x]))
        return kind.evaluate(self._promoted(kind), x)

    def simplify(self):
        if self.kind is NUMERIC:
            return self
        return Polynomial([sp.simplify(c) for c in self._coeffs], kind=SYMBOLIC)

    def _coerce(self, other):
        """Returns other as a Polynomial, or None for operands of another type."""
        if isinstance(other, Polynomial):
            return other
        if isinstance(other, _OPERAND_TYPES):
            return Polynomial(other)
        return None

    def _apply(self, other, op):
        other = self._coerce(other)
        if other is None:
            # Leaves the operation to other's reflected operator
            return NotImplemented
        kind = promote(self.kind, other.kind)
        return kind, getattr(kind, op)(self._promoted(kind), other._promoted(kind))

    def _promoted(self, kind):
        if kind is self.kind:
            return self._coeffs
        return kind.normalize(list(self._coeffs))

    def _arith(self, other, op):
        result = self._apply(other, op)
        if result is NotImplemented:
            return result
        kind, coeffs = result
        return Polynomial(coeffs, kind=kind)

    def _reflected(self, other):
        other = self._coerce(other)
        return NotImplemented if other is None else other

    def __add__(self, other):
        return self._arith(other, "add")

    def __radd__(self, other):
        other = self._reflected(other)
        return other if other is NotImplemented else other + self

    def __sub__(self, other):
        return self._arith(other, "sub")

    def __rsub__(self, other):
        other = self._reflected(other)
        return other if other is NotImplemented else other - self

    def __mul__(self, other):
        return self._arith(other, "mul")

    def __rmul__(self, other):
        other = self._reflected(other)
        return other if other is NotImplemented else other * self

    def __neg__(self):
        return self * -1

    def __truediv__(self, scalar):
        """Divides every coefficient by a scalar."""
        if not isinstance(scalar, _SCALAR_TYPES):
            return NotImplemented
        kind = promote(self.kind, kind_of([scalar]))
        coeffs = [c / scalar for c in self._promoted(kind)]
        return Polynomial(coeffs, kind=kind)

    def __divmod__(self, other):
        """Long division: returns (quotient, remainder) with self = quotient*other + remainder."""
        result = self._apply(other, "divmod")
        if result is NotImplemented:
            return result
        kind, (q, r) = result
        return Polynomial(q, kind=kind), Polynomial(r, kind=kind)

    def __len__(self):
        return len(self._coeffs)

    def __repr__(self):
        return f"Polynomial({list(self._coeffs)})"
