import unittest

import numpy as np
import sympy as sp

from lti.exceptions import InvalidConstructionError, LTIError
from lti.polynomial import Polynomial
from lti.scalar import approx_equal
from lti.transfer_function import TransferFunction


def _sorted(values):
    return sorted((complex(v) for v in values), key=lambda c: (c.real, c.imag))


class TestConstruction(unittest.TestCase):
    """
    Construction paths, the monic invariant and automatic pole/zero cancellation.
    """

    def test_denominator_made_monic(self):
        tf = TransferFunction([3], [2, 6, 4])
        self.assertEqual(tf.den.leading, 1.0)
        np.testing.assert_allclose(tf.num.coeffs, [1.5])
        np.testing.assert_allclose(tf.den.coeffs, [1, 3, 2])
        self.assertAlmostEqual(tf.K, 1.5)

    def test_common_root_is_cancelled(self):
        with self.assertLogs("lti.transfer_function", level="INFO") as cm:
            tf = TransferFunction([1, 2], [1, 3, 2])

        self.assertIn("pole/zero cancellation", cm.output[0])
        np.testing.assert_allclose(tf.num.coeffs, [1])
        np.testing.assert_allclose(tf.den.coeffs, [1, 1])
        self.assertEqual(tf.z, ())
        np.testing.assert_allclose(_sorted(tf.p), [-1])

    def test_cancellation_after_normalization(self):
        tf = TransferFunction([2, 4], [2, 6, 4])
        np.testing.assert_allclose(tf.num.coeffs, [1])
        np.testing.assert_allclose(tf.den.coeffs, [1, 1])

    def test_cancellation_within_tolerance(self):
        tf = TransferFunction.from_zpk([-1, -5], [-1.0004, -2], 2)
        np.testing.assert_allclose(_sorted(tf.z), [-5])
        np.testing.assert_allclose(_sorted(tf.p), [-2])
        np.testing.assert_allclose(tf.num.coeffs, [2, 10])
        np.testing.assert_allclose(tf.den.coeffs, [1, 2])

    def test_no_cancellation_outside_tolerance(self):
        tf = TransferFunction.from_zpk([-1], [-1.01, -2], 1)
        self.assertEqual(len(tf.z), 1)
        self.assertEqual(len(tf.p), 2)

    def test_repeated_cancellation_reaches_fixed_point(self):
        tf = TransferFunction.from_zpk([-1, -2], [-1, -2, -3], 1)
        self.assertEqual(tf.z, ())
        np.testing.assert_allclose(_sorted(tf.p), [-3])
        np.testing.assert_allclose(tf.den.coeffs, [1, 3])

    def test_no_zero_matches_any_pole(self):
        tf = TransferFunction([1, 6, 11, 6], [1, 4, 5, 2])
        for zi in tf.z:
            for pj in tf.p:
                self.assertFalse(approx_equal(zi, pj))
        self.assertEqual(tf.den.leading, 1.0)

    def test_zero_numerator_is_canonicalized(self):
        with self.assertLogs("lti.transfer_function", level="INFO") as cm:
            tf = TransferFunction.from_polynomial([0, 0])

        self.assertIn("Simplifying the zero transfer function", cm.output[0])
        np.testing.assert_allclose(tf.den.coeffs, [1])
        self.assertTrue(tf.num.is_zero())
        self.assertEqual(tf.K, 0)
        self.assertEqual(tf.z, ())
        self.assertEqual(tf.p, ())

    def test_zero_numerator_with_nontrivial_denominator(self):
        tf = TransferFunction([0], [1, 5, 6])
        np.testing.assert_allclose(tf.den.coeffs, [1])

    def test_zero_denominator_rejected(self):
        with self.assertRaises(InvalidConstructionError):
            TransferFunction([1], [0, 0])

    def test_zpk_round_trip(self):
        tf = TransferFunction.from_zpk([-3], [-1, -2], 4)
        np.testing.assert_allclose(tf.num.coeffs, [4, 12])
        np.testing.assert_allclose(tf.den.coeffs, [1, 3, 2])

        rebuilt = TransferFunction(tf.num, tf.den)
        np.testing.assert_allclose(_sorted(rebuilt.z), [-3])
        np.testing.assert_allclose(_sorted(rebuilt.p), [-2, -1])
        self.assertAlmostEqual(rebuilt.K, 4)

    def test_complex_poles_round_trip(self):
        tf = TransferFunction.from_zpk([], [-1 + 2j, -1 - 2j], 5)
        np.testing.assert_allclose(tf.den.coeffs, [1, 2, 5])
        np.testing.assert_allclose(_sorted(tf.p), [-1 - 2j, -1 + 2j])

    def test_leading_zero_in_denominator(self):
        tf = TransferFunction([1.1, 10, 110], [0, 1, 10, 100])
        self.assertEqual(tf.den.n, 2)
        self.assertEqual(tf.properness, "semiproper")

    def test_polynomial_arguments(self):
        tf = TransferFunction(Polynomial([1]), Polynomial([1, 4]))
        np.testing.assert_allclose(tf.den.coeffs, [1, 4])


class TestArithmetic(unittest.TestCase):
    """
    Sum, difference, product and quotient of transfer functions, each followed
    by pole/zero cancellation.
    """

    def setUp(self):
        self.G1 = TransferFunction([1], [1, 1])
        self.G2 = TransferFunction([1], [1, 2])

    def test_add(self):
        tf = self.G1 + self.G2
        np.testing.assert_allclose(tf.num.coeffs, [2, 3])
        np.testing.assert_allclose(tf.den.coeffs, [1, 3, 2])

    def test_sub(self):
        tf = self.G1 - self.G2
        np.testing.assert_allclose(tf.num.coeffs, [1])
        np.testing.assert_allclose(tf.den.coeffs, [1, 3, 2])

    def test_sub_self_is_zero(self):
        tf = self.G1 - self.G1
        self.assertTrue(tf.num.is_zero())
        np.testing.assert_allclose(tf.den.coeffs, [1])

    def test_mul_cancels(self):
        tf = self.G1 * TransferFunction([1, 1], [1, 3])
        np.testing.assert_allclose(tf.num.coeffs, [1])
        np.testing.assert_allclose(tf.den.coeffs, [1, 3])

    def test_div_self_is_one(self):
        tf = self.G1 / self.G1
        np.testing.assert_allclose(tf.num.coeffs, [1])
        np.testing.assert_allclose(tf.den.coeffs, [1])

    def test_div(self):
        tf = self.G1 / self.G2
        np.testing.assert_allclose(tf.num.coeffs, [1, 2])
        np.testing.assert_allclose(tf.den.coeffs, [1, 1])

    def test_division_by_zero_transfer_function(self):
        with self.assertRaises(InvalidConstructionError):
            self.G1 / TransferFunction(0)
        with self.assertRaises(InvalidConstructionError):
            self.G1 / 0

    def test_error_hierarchy(self):
        with self.assertRaises(LTIError):
            self.G1 / 0
        with self.assertRaises(ValueError):
            self.G1 / 0

    def test_scalar_operands(self):
        np.testing.assert_allclose((self.G1 + 1).num.coeffs, [1, 2])
        np.testing.assert_allclose((1 + self.G1).num.coeffs, [1, 2])
        np.testing.assert_allclose((2 * self.G1).num.coeffs, [2])
        np.testing.assert_allclose((1 - self.G1).num.coeffs, [1, 0])
        np.testing.assert_allclose((1 / self.G1).num.coeffs, [1, 1])

    def test_coefficient_vector_operand(self):
        tf = self.G1 * [1, 0]
        np.testing.assert_allclose(tf.num.coeffs, [1, 0])
        np.testing.assert_allclose(tf.den.coeffs, [1, 1])

    def test_polynomial_operand(self):
        tf = self.G1 * Polynomial([1, 1])
        np.testing.assert_allclose(tf.num.coeffs, [1])
        np.testing.assert_allclose(tf.den.coeffs, [1])

    def test_polynomial_left_operand(self):
        P = Polynomial([1, 1])

        product = P * self.G1
        self.assertIsInstance(product, TransferFunction)
        np.testing.assert_allclose(product.num.coeffs, [1])
        np.testing.assert_allclose(product.den.coeffs, [1])

        total = P + self.G1
        np.testing.assert_allclose(total.num.coeffs, [1, 2, 2])
        np.testing.assert_allclose(total.den.coeffs, [1, 1])

        difference = P - self.G1
        np.testing.assert_allclose(difference.num.coeffs, [1, 2, 0])
        np.testing.assert_allclose(difference.den.coeffs, [1, 1])

        quotient = P / self.G1
        self.assertIsInstance(quotient, TransferFunction)
        np.testing.assert_allclose(quotient.num.coeffs, [1, 2, 1])
        np.testing.assert_allclose(quotient.den.coeffs, [1])

    def test_coefficient_array_left_operand(self):
        v = np.array([1.0, 0.0])

        product = v * self.G1
        self.assertIsInstance(product, TransferFunction)
        np.testing.assert_allclose(product.num.coeffs, [1, 0])
        np.testing.assert_allclose(product.den.coeffs, [1, 1])

        total = v + self.G1
        np.testing.assert_allclose(total.num.coeffs, [1, 1, 1])
        np.testing.assert_allclose(total.den.coeffs, [1, 1])

        difference = v - self.G1
        np.testing.assert_allclose(difference.num.coeffs, [1, 1, -1])
        np.testing.assert_allclose(difference.den.coeffs, [1, 1])

        quotient = v / self.G1
        self.assertIsInstance(quotient, TransferFunction)
        np.testing.assert_allclose(quotient.num.coeffs, [1, 1, 0])
        np.testing.assert_allclose(quotient.den.coeffs, [1])

    def test_numpy_scalar_left_operand(self):
        tf = np.float64(2.0) * self.G1
        self.assertIsInstance(tf, TransferFunction)
        np.testing.assert_allclose(tf.num.coeffs, [2])

    def test_adding_zero_is_identity(self):
        G = TransferFunction([1, 3], [1, 4, 8])
        tf = G + TransferFunction(0)
        np.testing.assert_allclose(tf.num.coeffs, G.num.coeffs)
        np.testing.assert_allclose(tf.den.coeffs, G.den.coeffs)

    def test_negation(self):
        tf = -self.G1
        np.testing.assert_allclose(tf.num.coeffs, [-1])
        np.testing.assert_allclose(tf.den.coeffs, [1, 1])

    def test_feedback(self):
        integrator = TransferFunction([1], [1, 0])
        T = integrator.feedback()
        np.testing.assert_allclose(T.num.coeffs, [1])
        np.testing.assert_allclose(T.den.coeffs, [1, 1])

    def test_closed_loop_matches_manual_formula(self):
        G = TransferFunction([1.1, 10, 110], [1, 10, 100])
        D = TransferFunction([1, 2], [4, 5])
        T = G * D / (1 + G * D)
        self.assertEqual(T.den.leading, 1.0)
        s = 0.3 + 0.7j
        L = G.evaluate(s) * D.evaluate(s)
        self.assertAlmostEqual(T.evaluate(s), L / (1 + L))

    def test_operands_are_not_mutated(self):
        before = self.G1.den.coeffs
        self.G1 * self.G2
        np.testing.assert_array_equal(self.G1.den.coeffs, before)


class TestTimestepAndDisplay(unittest.TestCase):

    def test_continuous_by_default(self):
        tf = TransferFunction([1], [1, 1])
        self.assertIsNone(tf.h)
        self.assertFalse(tf.is_discrete)

    def test_discrete(self):
        tf = TransferFunction([1], [1, -0.5], h=0.1)
        self.assertTrue(tf.is_discrete)
        self.assertEqual(tf.h, 0.1)

    def test_invalid_timestep(self):
        for h in (0, -1, "0.1", 1j, True):
            with self.assertRaises(InvalidConstructionError):
                TransferFunction([1], [1, 1], h=h)

    def test_timestep_propagates(self):
        G = TransferFunction([1], [1, -0.5], h=0.1)
        self.assertEqual((G * 2).h, 0.1)
        self.assertEqual((G + G).h, 0.1)
        self.assertEqual((G + TransferFunction([1])).h, 0.1)

    def test_mismatched_timesteps(self):
        G1 = TransferFunction([1], [1, -0.5], h=0.1)
        G2 = TransferFunction([1], [1, -0.5], h=0.2)
        with self.assertRaises(InvalidConstructionError):
            G1 + G2

    def test_properness(self):
        self.assertEqual(TransferFunction([1], [1, 1]).properness, "strictly proper")
        self.assertEqual(TransferFunction([1, 2], [1, 3]).properness, "semiproper")
        self.assertEqual(TransferFunction([1, 2, 3], [1, 3]).properness, "improper")

    def test_describe(self):
        text = TransferFunction([1], [1, 1]).describe()
        self.assertIn("Continuous-time transfer function", text)
        self.assertIn("strictly proper", text)

        text = TransferFunction([1], [1, -0.5], h=0.1).describe()
        self.assertIn("Discrete-time transfer function with h=0.1", text)

    def test_repr(self):
        self.assertIn("TF(Num=", repr(TransferFunction([1], [1, 1])))


class TestSymbolicTransferFunction(unittest.TestCase):
    """
    Transfer functions whose coefficients or roots are sympy expressions.
    """

    def setUp(self):
        self.a = sp.Symbol("a")

    def test_symbolic_cancellation_from_polynomials(self):
        tf = TransferFunction([1, self.a], [1, self.a])
        self.assertEqual(tf.z, ())
        self.assertEqual(tf.p, ())
        self.assertEqual(tf.den.n, 0)
        self.assertEqual(tf.num.n, 0)

    def test_symbolic_cancellation_from_zpk(self):
        tf = TransferFunction.from_zpk([self.a], [self.a, -1], 1)
        self.assertEqual(tf.z, ())
        self.assertEqual(len(tf.p), 1)
        self.assertTrue(approx_equal(tf.p[0], -1))

    def test_symbolic_gain(self):
        tf = TransferFunction.from_zpk([-1], [-2], self.a)
        self.assertEqual(sp.simplify(tf.K - self.a), 0)
        self.assertEqual(tf.num.n, 1)

    def test_symbolic_evaluate(self):
        tf = TransferFunction([1], [1, self.a])
        value = tf.evaluate(0)
        self.assertAlmostEqual(complex(value.subs(self.a, 2)), 0.5)

    def test_symbolic_arithmetic(self):
        G = TransferFunction([1], [1, self.a])
        T = G / (1 + G)
        value = T.evaluate(1)
        self.assertAlmostEqual(complex(value.subs(self.a, 3)), 1 / 5)


if __name__ == "__main__":
    unittest.main()
