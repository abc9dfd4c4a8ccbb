"""
Frequency-response evaluation of transfer functions.

Produces the raw data a Bode plot needs (frequencies, magnitude, phase) and the
crossover frequencies/margins read off it. Nothing here draws anything.
"""

import math
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional

import numpy as np
from numba import njit

from config import BODE_PARAMS
from lti.exceptions import EvaluationSingularityError
from lti.scalar import as_number, kind_of


@njit
def _horner(coeffs, points):
    out = np.empty(points.shape[0], dtype=np.complex128)
    for k in range(points.shape[0]):
        acc = 0j
        for c in coeffs:
            acc = acc * points[k] + c
        out[k] = acc
    return out


def _is_numeric(tf):
    return not (tf.num.kind.is_symbolic or tf.den.kind.is_symbolic)


def evaluate_at(tf, s):
    """
    Evaluates num(s)/den(s) at a single point.

    Raises:
        TypeError: If s is an array or sequence rather than a single point.
        EvaluationSingularityError: If den(s) is exactly zero, i.e. s is a pole.
    """
    if isinstance(s, (np.ndarray, list, tuple)):
        raise TypeError("evaluate_at takes a single point, use evaluate() for several")
    n_val = tf.num.evaluate(s)
    d_val = tf.den.evaluate(s)
    if kind_of([d_val]).is_zero_value(d_val):
        raise EvaluationSingularityError(f"Transfer function evaluated at its pole s={s}")
    return n_val / d_val


class FrequencyResponse:
    """
    Lazy response of a transfer function over a fixed set of points.

    Iterating evaluates one point at a time and can be repeated; len() is the
    number of points. to_array() evaluates all points at once (compiled Horner
    kernel for numeric transfer functions).
    """

    def __init__(self, tf, points):
        if isinstance(points, np.ndarray):
            points = np.atleast_1d(points).tolist()
        self.tf = tf
        self.points = tuple(points)

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        for s in self.points:
            yield evaluate_at(self.tf, s)

    def to_array(self):
        if not _is_numeric(self.tf):
            return np.array(list(self), dtype=object)

        points = np.array([complex(s) for s in self.points], dtype=np.complex128)
        num = np.asarray(self.tf.num.coeffs, dtype=np.complex128)
        den = np.asarray(self.tf.den.coeffs, dtype=np.complex128)
        n_vals = _horner(num, points)
        d_vals = _horner(den, points)

        poles = np.flatnonzero(d_vals == 0)
        if poles.size > 0:
            raise EvaluationSingularityError(
                f"Transfer function evaluated at its pole s={self.points[poles[0]]}"
            )
        return n_vals / d_vals


def evaluate(tf, s_values):
    """Response of tf at every point in s_values, as a lazy FrequencyResponse."""
    return FrequencyResponse(tf, s_values)


def frequency_points(tf, omega_range):
    """
    Maps real frequencies to the complex plane: s = j*omega in continuous time,
    z = exp(j*omega*h) in discrete time.
    """
    omega = np.asarray(omega_range, dtype=float)
    if tf.h is not None:
        return np.exp(1j * omega * tf.h)
    return 1j * omega


@dataclass(frozen=True)
class BodeConfig:
    """
    Parameters of a Bode plot. Fields left as None are derived from the
    transfer function by resolve().

    Attributes:
        log_omega_min, log_omega_max: log10 bounds of the frequency grid.
        omega_N: Number of logarithmically spaced frequencies.
        linestyle: Line style handed to the plotting code.
        lines: Whether to draw the gain=1 / phase=-180 deg guide lines.
        phase_shift: Integer multiple of 360 deg added to the phase.
    """

    log_omega_min: Optional[float] = None
    log_omega_max: Optional[float] = None
    omega_N: int = BODE_PARAMS["omega_N"]
    linestyle: str = BODE_PARAMS["linestyle"]
    lines: bool = BODE_PARAMS["lines"]
    phase_shift: int = BODE_PARAMS["phase_shift"]

    def resolve(self, tf):
        """Returns a copy with the frequency bounds filled in for tf."""
        mags = [abs(as_number(r)) for r in tuple(tf.z) + tuple(tf.p)]
        nonzero = [m for m in mags if m > 0]
        lo_fallback, hi_fallback = BODE_PARAMS["fallback_range"]
        margin = BODE_PARAMS["root_margin"]

        log_omega_min = self.log_omega_min
        if log_omega_min is None:
            if nonzero:
                log_omega_min = math.floor(math.log10(min(nonzero) / margin))
            else:
                log_omega_min = lo_fallback

        log_omega_max = self.log_omega_max
        if log_omega_max is None:
            if tf.h is not None:
                # Up to just below the Nyquist frequency
                nyquist = math.pi / tf.h
                log_omega_max = math.log10(BODE_PARAMS["nyquist_fraction"] * nyquist)
            elif nonzero:
                log_omega_max = math.ceil(math.log10(max(nonzero) * margin))
            else:
                log_omega_max = hi_fallback

        return replace(self, log_omega_min=log_omega_min, log_omega_max=log_omega_max)


class BodeData(NamedTuple):
    omega: np.ndarray
    magnitude: np.ndarray
    phase: np.ndarray
    config: BodeConfig


class Margins(NamedTuple):
    omega_c: Optional[float]
    phase_margin: Optional[float]
    omega_g: Optional[float]
    gain_margin: Optional[float]


def bode_data(tf, config=None):
    """
    Calculates magnitude (absolute) and unwrapped phase (deg) over the
    frequency grid described by config.

    Raises:
        TypeError: If tf has symbolic coefficients.
        EvaluationSingularityError: If a grid frequency hits a pole exactly.
    """
    if not _is_numeric(tf):
        raise TypeError("Bode data requires a transfer function with numeric coefficients")

    config = (config or BodeConfig()).resolve(tf)
    omega = np.logspace(config.log_omega_min, config.log_omega_max, config.omega_N)
    resp = tf.frequency_response(omega).to_array()

    mag = np.abs(resp)
    phase = np.degrees(np.unwrap(np.angle(resp))) + config.phase_shift * 360
    return BodeData(omega, mag, phase, config)


def crossover_margins(data):
    """
    Reads the gain crossover (|G| = 1) and phase crossover (phase = -180 deg)
    off Bode data, taking the midpoint of the first bracketing pair of samples.

    Returns:
        Margins: (omega_c, phase_margin, omega_g, gain_margin), with None where
        the response never crosses.
    """
    omega, mag, phase = data.omega, data.magnitude, data.phase

    omega_c = phase_margin = None
    sign_change = np.flatnonzero((mag[:-1] - 1) * (mag[1:] - 1) <= 0)
    if sign_change.size > 0:
        k = sign_change[0]
        omega_c = float((omega[k] + omega[k + 1]) / 2)
        phase_margin = float(180 + (phase[k] + phase[k + 1]) / 2)

    omega_g = gain_margin = None
    sign_change = np.flatnonzero((phase[:-1] + 180) * (phase[1:] + 180) <= 0)
    if sign_change.size > 0:
        k = sign_change[0]
        omega_g = float((omega[k] + omega[k + 1]) / 2)
        gain_margin = float(2 / (mag[k] + mag[k + 1]))

    return Margins(omega_c, phase_margin, omega_g, gain_margin)
