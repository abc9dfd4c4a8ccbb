"""
Partial-fraction expansion of (proper or improper) rational transfer functions.

    F(s) = d_1/(s - p_1)^k_1 + ... + d_n/(s - p_n)^k_n

Repeated poles contribute one term per power 1..r. For an improper F the
polynomial part of num/den is appended as extra terms with pole 0 and powers
0, -1, -2, ..., where a term with k <= 0 stands for d * s^(-k).
"""

import logging
import math
from typing import NamedTuple, Tuple

import numpy as np
import sympy as sp

from config import TF_PARAMS
from lti.exceptions import InvalidConstructionError
from lti.polynomial import Polynomial
from lti.scalar import approx_equal, approx_equal_any, group_repeated, kind_of

logger = logging.getLogger(__name__)


class PartialFractionExpansion(NamedTuple):
    """
    Result of expand(): poles p, coefficients d, powers k and the number of
    terms n, so that ``p, d, k, n = expand(F)`` works.
    """

    poles: Tuple
    coefficients: Tuple
    powers: Tuple[int, ...]
    n: int

    def terms(self):
        return zip(self.poles, self.coefficients, self.powers)

    def evaluate(self, s):
        """Sums the expansion at a single point."""
        total = 0
        for p, d, k in self.terms():
            if k > 0:
                total = total + d / (s - p) ** k
            else:
                total = total + d * s ** (-k)
        return total

    def to_transfer_function(self, h=None):
        """Rebuilds the rational function as a sum of per-term transfer functions."""
        from lti.transfer_function import TransferFunction

        F = TransferFunction(0, h=h)
        for p, d, k in self.terms():
            if k > 0:
                F = F + TransferFunction(d, Polynomial.from_roots([p] * k), h=h)
            else:
                F = F + TransferFunction([d] + [0] * (-k), h=h)
        return F


def _representative(group):
    if kind_of(group).is_symbolic:
        return group[0]
    return sum(complex(v) for v in group) / len(group)


def _plain(value):
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, complex) and value.imag == 0:
        return value.real
    return value


def expand(F, tol=None):
    """
    Computes the partial-fraction expansion of a TransferFunction.

    Args:
        F: The TransferFunction to expand.
        tol: Tolerance for detecting repeated poles and zero coefficients.

    Returns:
        PartialFractionExpansion: (poles, coefficients, powers, n).

    Raises:
        InvalidConstructionError: If a residue denominator a(p_i) vanishes,
        i.e. a pole multiplicity was not detected.
    """
    tol = TF_PARAMS["pfe_tol"] if tol is None else tol
    m, n = F.num.n, F.den.n

    improper = m >= n
    if improper:
        div, rem = divmod(F.num, F.den)
    else:
        rem = F.num

    # Group tolerance-equal poles so multiplicities can be counted by a linear scan
    poles = group_repeated(F.p, tol)
    k = [1] * n
    for i in range(n - 1):
        if approx_equal(poles[i + 1], poles[i], tol):
            k[i + 1] = k[i] + 1
    k_next = k[1:] + [0]

    pole_kind = kind_of(poles)
    d = [None] * n
    for i in range(n - 1, -1, -1):
        if k[i] >= k_next[i]:
            # Last (highest power) term of a group of r equal poles
            r = k[i]
            start = i + 1 - r
            pole = _representative(poles[start : i + 1])
            others = poles[:start] + poles[i + 1 :]
            a = Polynomial(pole_kind.from_roots(others), kind=pole_kind)
            a_derivs = {j: a.derivative(j) for j in range(1, r)}
            a_at_pole = a.evaluate(pole)
            if kind_of([a_at_pole]).is_zero_value(a_at_pole) or any(
                approx_equal_any(pole, others, tol)
            ):
                raise InvalidConstructionError(
                    f"Residue denominator vanishes at pole {pole}; multiplicity not resolved"
                )
            for j in range(start, i + 1):
                poles[j] = pole

        q = r - k[i]
        d_i = rem.derivative(q).evaluate(pole) / math.factorial(q)
        for j in range(q, 0, -1):
            d_i = d_i - d[i + j] * a_derivs[j].evaluate(pole) / math.factorial(j)
        d[i] = d_i / a_at_pole
        logger.debug(f"Term {i}: pole={pole}, power={k[i]}, coefficient={d[i]}")

    if improper:
        quotient = list(div.coeffs)[::-1]
        poles.extend([0] * len(quotient))
        d.extend(quotient)
        k.extend(-j for j in range(len(quotient)))

    # Remove all terms with (tolerance-)zero coefficients
    keep = [i for i in range(len(d)) if not approx_equal(d[i], 0, tol)]
    poles = [_plain(poles[i]) for i in keep]
    d = [_plain(sp.simplify(d[i]) if kind_of([d[i]]).is_symbolic else d[i]) for i in keep]
    k = [k[i] for i in keep]
    return PartialFractionExpansion(tuple(poles), tuple(d), tuple(k), len(d))
