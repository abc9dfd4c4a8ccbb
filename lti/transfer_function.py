import logging
import numbers

import numpy as np
import sympy as sp

from config import TF_PARAMS
from lti.exceptions import InvalidConstructionError
from lti.frequency_response import FrequencyResponse, evaluate_at, frequency_points
from lti.polynomial import Polynomial
from lti.scalar import approx_equal_any, kind_of

logger = logging.getLogger(__name__)


def _as_polynomial(value):
    if isinstance(value, Polynomial):
        return value
    return Polynomial(value)


def _check_timestep(h):
    if h is None:
        return None
    if isinstance(h, bool) or not isinstance(h, numbers.Real) or not h > 0:
        raise InvalidConstructionError(f"Timestep h must be a positive real, got {h!r}")
    return float(h)


def _merge_timesteps(h1, h2):
    if h1 is None:
        return h2
    if h2 is None or h1 == h2:
        return h1
    raise InvalidConstructionError(
        f"Cannot combine transfer functions with different timesteps ({h1} and {h2})"
    )


def _first_cancellable_pair(z, p, tol):
    for i, zi in enumerate(z):
        matches = approx_equal_any(zi, p, tol)
        if any(matches):
            return i, matches.index(True)
    return None


class TransferFunction:
    """
    Representation of a Single-Input Single-Output (SISO) Transfer Function.
    G(s) = num(s) / den(s)  (continuous time, h is None)
    G(z) = num(z) / den(z)  (discrete time with timestep h)

    The (num, den) and (z, p, K) representations are kept equivalent: the
    denominator is monic, K is the leading coefficient of the numerator, and
    z, p are the roots of num, den. Common roots of num and den (within tol)
    are cancelled on construction, so every arithmetic result is reduced.
    Coefficients may be numeric or sympy expressions.

    Instances are immutable; arithmetic always returns a new TransferFunction.
    """

    # Lets ndarray coefficient vectors on the left reach the reflected operators
    __array_ufunc__ = None

    def __init__(self, num, den=1, h=None, tol=None):
        """
        Builds a transfer function from numerator and denominator polynomials.

        Args:
            num: Numerator, as a Polynomial, a coefficient sequence (highest
                degree first) or a scalar.
            den: Denominator, same forms as num. Defaults to 1.
            h: Timestep for a discrete-time transfer function, None for
                continuous time.
            tol: Tolerance used for pole/zero cancellation.

        Raises:
            InvalidConstructionError: If den is the zero polynomial or h is
            not a positive real.
        """
        num = _as_polynomial(num)
        den = _as_polynomial(den)
        if den.is_zero():
            raise InvalidConstructionError("Denominator of a transfer function cannot be zero")

        # Make the denominator monic
        lead = den.leading
        num = num / lead
        den = den / lead
        self._setup(num, den, None, None, num.leading, h, tol)

    @classmethod
    def from_polynomial(cls, num, h=None, tol=None):
        """Transfer function with numerator num and denominator 1."""
        return cls(num, 1, h=h, tol=tol)

    @classmethod
    def from_polynomials(cls, num, den, h=None, tol=None):
        return cls(num, den, h=h, tol=tol)

    @classmethod
    def from_zpk(cls, z, p, K, h=None, tol=None):
        """Builds K * prod(s - z_i) / prod(s - p_i)."""
        z = tuple(z)
        p = tuple(p)
        obj = cls.__new__(cls)
        num = Polynomial.from_roots(z, gain=K)
        den = Polynomial.from_roots(p)
        obj._setup(num, den, z, p, K, h, tol)
        return obj

    def _setup(self, num, den, z, p, K, h, tol):
        self._h = _check_timestep(h)
        self._tol = TF_PARAMS["cancel_tol"] if tol is None else tol

        if num.is_zero():
            logger.info("Simplifying the zero transfer function")
            num = Polynomial([0])
            den = Polynomial([1])
            z, p, K = (), (), 0
        else:
            z = num.roots() if z is None else tuple(z)
            p = den.roots() if p is None else tuple(p)
            num, den, z, p = self._cancel(num, den, z, p, K)

        if kind_of(z).is_symbolic or num.kind.is_symbolic:
            z = tuple(sp.simplify(zi) for zi in z)
            num = num.simplify()
            if isinstance(K, sp.Basic):
                K = sp.simplify(K)
        if kind_of(p).is_symbolic or den.kind.is_symbolic:
            p = tuple(sp.simplify(pi) for pi in p)
            den = den.simplify()

        self._num = num
        self._den = den
        self._z = z
        self._p = p
        self._K = K.item() if isinstance(K, np.generic) else K

    def _cancel(self, num, den, z, p, K):
        """Strips matching (zero, pole) pairs until none is left."""
        if num.n == 0 or den.n == 0:
            return num, den, z, p

        z = list(z)
        p = list(p)
        while z and p:
            match = _first_cancellable_pair(z, p, self._tol)
            if match is None:
                break
            i, j = match
            logger.info(f"Performing pole/zero cancellation at s={z[i]}")
            del z[i]
            del p[j]
            num = Polynomial.from_roots(z, gain=K)
            den = Polynomial.from_roots(p)
        return num, den, tuple(z), tuple(p)

    @property
    def num(self):
        return self._num

    @property
    def den(self):
        return self._den

    @property
    def z(self):
        return self._z

    @property
    def p(self):
        return self._p

    @property
    def K(self):
        return self._K

    @property
    def h(self):
        return self._h

    @property
    def tol(self):
        return self._tol

    @property
    def is_discrete(self):
        return self._h is not None

    @property
    def properness(self):
        nr = self._den.n - self._num.n
        if nr > 0:
            return "strictly proper"
        if nr == 0:
            return "semiproper"
        return "improper"

    def _coerce(self, other):
        if isinstance(other, TransferFunction):
            return other
        return TransferFunction.from_polynomial(other, tol=self._tol)

    def _combine(self, num, den, other):
        return TransferFunction(
            num, den, h=_merge_timesteps(self._h, other.h), tol=self._tol
        )

    def __add__(self, other):
        G2 = self._coerce(other)
        return self._combine(
            self.num * G2.den + G2.num * self.den, self.den * G2.den, G2
        )

    def __radd__(self, other):
        return self._coerce(other) + self

    def __sub__(self, other):
        G2 = self._coerce(other)
        return self._combine(
            self.num * G2.den - G2.num * self.den, self.den * G2.den, G2
        )

    def __rsub__(self, other):
        return self._coerce(other) - self

    def __mul__(self, other):
        G2 = self._coerce(other)
        return self._combine(self.num * G2.num, self.den * G2.den, G2)

    def __rmul__(self, other):
        return self._coerce(other) * self

    def __truediv__(self, other):
        G2 = self._coerce(other)
        if G2.num.is_zero():
            raise InvalidConstructionError("Division by the zero transfer function")
        return self._combine(self.num * G2.den, self.den * G2.num, G2)

    def __rtruediv__(self, other):
        return self._coerce(other) / self

    def __neg__(self):
        return TransferFunction(-self.num, self.den, h=self._h, tol=self._tol)

    def feedback(self, other=1, sign=-1):
        """
        Closed-loop transfer function G / (1 - sign * G * H).

        With the default negative feedback this is G / (1 + G * H).
        """
        return self / (1 - (self * other) * sign)

    def evaluate(self, s):
        """
        Evaluates G at a single point using Horner's method on num and den.

        A sequence or array of points is evaluated in one batch and the
        responses are returned as a numpy array.
        """
        if isinstance(s, (np.ndarray, list, tuple)):
            return FrequencyResponse(self, s).to_array()
        return evaluate_at(self, s)

    def frequency_response(self, omega_range):
        """
        Lazy response over real frequencies: s = j*omega in continuous time,
        z = exp(j*omega*h) in discrete time.
        """
        return FrequencyResponse(self, frequency_points(self, omega_range))

    def partial_fraction_expansion(self, tol=None):
        from lti.partial_fraction import expand

        return expand(self, tol=tol)

    def describe(self):
        """Multi-line summary of both representations."""
        if self.is_discrete:
            domain = f"Discrete-time transfer function with h={self._h}"
        else:
            domain = "Continuous-time transfer function"
        m, n = self._num.n, self._den.n
        lines = [
            f"num: {list(self._num.coeffs)}",
            f"den: {list(self._den.coeffs)}",
            domain,
            f"  m={m}, n={n}, n_r=n-m={n - m}, {self.properness}, K={self._K}",
            f"  z: {list(self._z)}",
            f"  p: {list(self._p)}",
        ]
        return "\n".join(lines)

    def __repr__(self):
        tag = f", h={self._h}" if self.is_discrete else ""
        return f"TF(Num={list(self._num.coeffs)}, Den={list(self._den.coeffs)}{tag})"
