"""Tests for compressible_les.numerics.filters."""

import itertools

from absl.testing import parameterized
import numpy as np
from compressible_les.numerics import filters
import tensorflow as tf


def _filter_1d_np(f, kernel, dim):
  """Applies a 3-point stencil along `dim`, leaving both ends unchanged."""
  f_0 = np.moveaxis(f, dim, 0)
  g = np.copy(f_0)
  g[1:-1] = kernel[0] * f_0[:-2] + kernel[1] * f_0[1:-1] + kernel[2] * f_0[2:]
  return np.moveaxis(g, 0, dim)


class FiltersTest(tf.test.TestCase, parameterized.TestCase):

  def setUp(self):
    """Initializes the test field."""
    super(FiltersTest, self).setUp()

    nx = 10
    ny = 8
    nz = 6

    # Generate the mesh.
    x = np.linspace(0, 2.0 * np.pi, nx)
    y = np.linspace(0, 2.0 * np.pi, ny)
    z = np.linspace(0, 2.0 * np.pi, nz)
    self.xx, self.yy, self.zz = np.meshgrid(x, y, z, indexing='ij')

    self.f = np.cos(self.xx) * np.sin(self.yy) * np.cos(self.zz)

  @parameterized.named_parameters(
      ('Box', filters.BOX_KERNEL), ('Gaussian', filters.GAUSSIAN_KERNEL))
  def testFilter3DProvidesCorrectSeparableFiltering(self, kernel):
    """Checks that the interior receives the tensor product of 1D filters."""
    res = self.evaluate(filters.filter_3d(tf.convert_to_tensor(self.f), kernel))

    h0, h1, h2 = kernel
    expected = np.copy(self.f)
    fy = (
        h0 * self.f[:, :-2, :] + h1 * self.f[:, 1:-1, :] +
        h2 * self.f[:, 2:, :])
    fz = h0 * fy[..., :-2] + h1 * fy[..., 1:-1] + h2 * fy[..., 2:]
    fx = h0 * fz[:-2, ...] + h1 * fz[1:-1, ...] + h2 * fz[2:, ...]
    expected[1:-1, 1:-1, 1:-1] = fx

    self.assertAllClose(expected, res)

  def testBoxFilterSmearsDeltaFunctionOverNeighboringCells(self):
    """Checks that a point value of 27 becomes 1 in the 3 x 3 x 3 block."""
    f = np.zeros((8, 8, 8), dtype=np.float64)
    f[4, 4, 4] = 27.0

    res = self.evaluate(
        filters.filter_3d(tf.convert_to_tensor(f), filters.BOX_KERNEL))

    expected = np.zeros((8, 8, 8), dtype=np.float64)
    expected[3:6, 3:6, 3:6] = 1.0
    self.assertAllClose(expected, res)
    self.assertAllClose(27.0, np.sum(res))

  @parameterized.named_parameters(
      ('Box', filters.BOX_KERNEL), ('Gaussian', filters.GAUSSIAN_KERNEL))
  def testFilterPreservesConstantField(self, kernel):
    """Checks that a normalized kernel leaves a constant field unchanged."""
    f = 2.5 * np.ones((5, 6, 7), dtype=np.float64)

    res = self.evaluate(filters.filter_3d(tf.convert_to_tensor(f), kernel))

    self.assertAllClose(f, res)

  def testBoxFilterPreservesLinearField(self):
    """Checks that a symmetric kernel is exact for a linear field."""
    f = 2.0 * self.xx + 3.0 * self.yy - self.zz + 1.0

    res = self.evaluate(
        filters.filter_3d(tf.convert_to_tensor(f), filters.BOX_KERNEL))

    self.assertAllClose(f, res)

  def testFilterIsLinear(self):
    """Checks that filter(a f + b g) = a filter(f) + b filter(g)."""
    rng = np.random.default_rng(42)
    f = rng.uniform(-1.0, 1.0, size=(6, 7, 8))
    g = rng.uniform(-1.0, 1.0, size=(6, 7, 8))
    a = 1.5
    b = -0.7

    def apply_filter(value):
      return self.evaluate(
          filters.filter_3d(tf.convert_to_tensor(value), filters.BOX_KERNEL))

    self.assertAllClose(
        apply_filter(a * f + b * g), a * apply_filter(f) + b * apply_filter(g))

  @parameterized.parameters(*itertools.product(
      ((3, 3, 3), (4, 5, 6), (12, 3, 7)),
      (filters.BOX_KERNEL, filters.GAUSSIAN_KERNEL)))
  def testFilterPreservesShape(self, shape, kernel):
    """Checks that the output has the same shape as the input."""
    f = tf.ones(shape, dtype=tf.float64)

    res = filters.filter_3d(f, kernel)

    self.assertEqual(list(shape), res.shape.as_list())

  def testFilterKeepsGhostLayerAndInputUnchanged(self):
    """Checks that values in the outermost layer are not filtered."""
    f = np.copy(self.f)
    f_tf = tf.convert_to_tensor(f)

    res = self.evaluate(filters.filter_3d(f_tf, filters.GAUSSIAN_KERNEL))

    self.assertAllEqual(self.f, self.evaluate(f_tf))
    self.assertAllEqual(self.f, f)
    self.assertAllEqual(self.f[0, ...], res[0, ...])
    self.assertAllEqual(self.f[-1, ...], res[-1, ...])
    self.assertAllEqual(self.f[:, 0, :], res[:, 0, :])
    self.assertAllEqual(self.f[:, -1, :], res[:, -1, :])
    self.assertAllEqual(self.f[..., 0], res[..., 0])
    self.assertAllEqual(self.f[..., -1], res[..., -1])

  @parameterized.parameters(0, 1, 2)
  def testFilter1DFiltersAlongOneDimension(self, dim):
    """Checks a single pass along `dim` against a numpy implementation."""
    kernel = (0.2, 0.5, 0.3)

    res = self.evaluate(
        filters.filter_1d(tf.convert_to_tensor(self.f), kernel, dim))

    self.assertAllClose(_filter_1d_np(self.f, kernel, dim), res)

  def testTestFilterUsesBoxKernel(self):
    """Checks that the test filter defaults to the box filter."""
    f = tf.convert_to_tensor(self.f)

    self.assertAllClose(
        self.evaluate(filters.filter_3d(f, filters.BOX_KERNEL)),
        self.evaluate(filters.test_filter(f)))

  @parameterized.named_parameters(
      ('TooShort', (0.5, 0.5)), ('TooLong', (0.2, 0.2, 0.2, 0.2, 0.2)))
  def testInvalidKernelRaisesValueError(self, kernel):
    with self.assertRaisesRegex(ValueError, 'exactly 3 entries'):
      filters.filter_3d(tf.convert_to_tensor(self.f), kernel)

  def testNon3DFieldRaisesValueError(self):
    with self.assertRaisesRegex(ValueError, 'Only 3D fields'):
      filters.filter_3d(tf.ones((4, 4), dtype=tf.float64), filters.BOX_KERNEL)

  def testTooFewPointsRaisesValueError(self):
    with self.assertRaisesRegex(ValueError, 'At least 3 points'):
      filters.filter_1d(
          tf.ones((2, 4, 4), dtype=tf.float64), filters.BOX_KERNEL, 0)


if __name__ == '__main__':
  tf.test.main()
