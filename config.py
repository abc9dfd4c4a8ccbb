"""
Central Configuration Module for the transfer-function algebra.

Tolerances used for pole/zero cancellation and partial-fraction expansion,
and the defaults handed to the Bode-plot data generator.
"""

TF_PARAMS = {
    "cancel_tol": 1e-3,
    "pfe_tol": 1e-3,
}

BODE_PARAMS = {
    "omega_N": 500,
    "linestyle": "solid",
    "lines": False,
    "phase_shift": 0,
    "fallback_range": (-2, 2),
    "root_margin": 5.0,
    "nyquist_fraction": 0.999,
}
