"""Tests for compressible_les.base.parameters."""

import dataclasses

from absl import flags
from absl.testing import flagsaver
from absl.testing import parameterized
import ml_collections
from compressible_les.base import parameters
from compressible_les.configs import default
from compressible_les.numerics import filters
import tensorflow as tf

FLAGS = flags.FLAGS


class GridParametrizationTest(tf.test.TestCase, parameterized.TestCase):

  def testDerivedQuantities(self):
    grid = parameters.GridParametrization(
        core_n=(4, 5, 6), grid_spacings=(0.5, 0.25, 2.0))

    self.assertEqual(1, grid.halo_width)
    self.assertEqual((6, 7, 8), grid.shape)

  def testCellCentersIncludeGhostCells(self):
    grid = parameters.GridParametrization(
        core_n=(3, 3, 3), grid_spacings=(1.0, 0.5, 2.0))

    self.assertSequenceAlmostEqual(
        (-0.5, 0.5, 1.5, 2.5, 3.5), grid.cell_centers(0))
    self.assertSequenceAlmostEqual(
        (-0.25, 0.25, 0.75, 1.25, 1.75), grid.cell_centers(1))

  @parameterized.named_parameters(
      ('ZeroCells', (0, 4, 4), (1.0, 1.0, 1.0)),
      ('NegativeSpacing', (4, 4, 4), (1.0, -1.0, 1.0)),
      ('TwoDimensions', (4, 4), (1.0, 1.0)),
  )
  def testInvalidGridRaisesValueError(self, core_n, grid_spacings):
    with self.assertRaises(ValueError):
      parameters.GridParametrization(
          core_n=core_n, grid_spacings=grid_spacings)

  def testGridIsImmutable(self):
    grid = parameters.GridParametrization(
        core_n=(4, 4, 4), grid_spacings=(1.0, 1.0, 1.0))

    with self.assertRaises(dataclasses.FrozenInstanceError):
      grid.core_n = (8, 8, 8)


class SgsParametersTest(tf.test.TestCase, parameterized.TestCase):

  def testDefaults(self):
    sgs = parameters.SgsParameters()

    self.assertEqual(filters.BOX_KERNEL, sgs.test_filter_kernel)
    self.assertEqual(0.0, sgs.c_d_min)
    self.assertEqual(0.15, sgs.c_d_max)
    self.assertEqual(1e-12, sgs.regularization)
    self.assertEqual(parameters.DeltaFormula.GEOMETRIC_MEAN, sgs.delta_formula)
    self.assertIsNone(sgs.filter_width_square)
    self.assertEqual(2.0, sgs.test_filter_ratio)

  @parameterized.named_parameters(
      ('KernelTooShort', {'test_filter_kernel': (0.5, 0.5)}),
      ('InvertedBounds', {'c_d_min': 0.2, 'c_d_max': 0.1}),
      ('NegativeRegularization', {'regularization': -1.0}),
      ('NonPositiveFilterWidth', {'filter_width_square': 0.0}),
  )
  def testInvalidOptionsRaiseValueError(self, options):
    with self.assertRaises(ValueError):
      parameters.SgsParameters(**options)


class LesParametersTest(tf.test.TestCase, parameterized.TestCase):

  @parameterized.named_parameters(
      ('GeometricMean', parameters.DeltaFormula.GEOMETRIC_MEAN, 0.25),
      ('Diagonal', parameters.DeltaFormula.DIAGONAL, 1.3125),
  )
  def testFilterWidthSquareFromDeltaFormula(self, delta_formula, expected):
    params = parameters.LesParameters.create_from_grid_size_and_spacing(
        (4, 4, 4), (0.5, 1.0, 0.25), delta_formula=delta_formula)

    self.assertAlmostEqual(expected, params.filter_width_square)
    self.assertAlmostEqual(4.0 * expected, params.test_filter_width_square)

  def testExplicitFilterWidthSquareOverridesFormula(self):
    params = parameters.LesParameters.create_from_grid_size_and_spacing(
        (4, 4, 4), (0.5, 1.0, 2.0), filter_width_square=0.3)

    self.assertAlmostEqual(0.3, params.filter_width_square)

  def testFromDefaultConfig(self):
    params = parameters.LesParameters.from_config(default.get_config())

    self.assertEqual((32, 32, 32), params.grid.core_n)
    self.assertEqual((34, 34, 34), params.grid.shape)
    self.assertSequenceAlmostEqual((1.0 / 32.0,) * 3,
                                   params.grid.grid_spacings)
    self.assertEqual(parameters.SgsParameters(), params.sgs)
    self.assertEqual(parameters.GasParameters(), params.gas)
    self.assertAlmostEqual((1.0 / 32.0)**2, params.filter_width_square)

  def testFromConfigWithOverrides(self):
    config = default.get_config()
    config.grid.core_n = (8, 4, 2)
    config.sgs.delta_formula = 'diagonal'
    config.sgs.c_d_max = 0.2
    config.sgs.filter_width_square = 0.01
    config.gas.gamma = 1.3

    params = parameters.LesParameters.from_config(config)

    self.assertEqual((8, 4, 2), params.grid.core_n)
    self.assertEqual(parameters.DeltaFormula.DIAGONAL, params.sgs.delta_formula)
    self.assertEqual(0.2, params.sgs.c_d_max)
    self.assertAlmostEqual(0.01, params.filter_width_square)
    self.assertEqual(1.3, params.gas.gamma)

  def testFromConfigWithoutOptionalSections(self):
    config = ml_collections.ConfigDict()
    config.grid = default.get_config().grid

    params = parameters.LesParameters.from_config(config)

    self.assertEqual(parameters.SgsParameters(), params.sgs)
    self.assertEqual(parameters.GasParameters(), params.gas)

  def testFromConfigRaisesForUnknownDeltaFormula(self):
    config = default.get_config()
    config.sgs.delta_formula = 'ARITHMETIC_MEAN'

    with self.assertRaisesRegex(ValueError, 'Unknown delta formula'):
      parameters.LesParameters.from_config(config)


class ConfigFileFlagTest(tf.test.TestCase):

  def setUp(self):
    super(ConfigFileFlagTest, self).setUp()
    if not FLAGS.is_parsed():
      FLAGS.mark_as_parsed()

  @flagsaver.flagsaver
  def testParamsFromConfigFileFlag(self):
    FLAGS['config'].parse(default.__file__)

    params = parameters.params_from_config_file_flag()

    self.assertEqual((32, 32, 32), params.grid.core_n)
    self.assertEqual(parameters.SgsParameters(), params.sgs)
    self.assertEqual(parameters.GasParameters(), params.gas)


if __name__ == '__main__':
  tf.test.main()
