# Copyright 2025 The compressible_les Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Parameters of the grid and the dynamic sub-grid scale model.

All parameters are immutable once constructed. They are created either directly
from Python values, or from an `ml_collections.ConfigDict` with the layout of
`compressible_les/configs/default.py`:

  config.grid.core_n: The number of interior cells (LEN, HIG, DEP).
  config.grid.grid_spacings: The uniform grid spacings (dx, dy, dz).
  config.sgs.*: The options of the dynamic Smagorinsky model.
  config.gas.*: The gas properties used to derive pressure and temperature.
"""

import dataclasses
import enum
from typing import Optional, Sequence, Tuple

from absl import logging
import ml_collections
from ml_collections import config_flags
from compressible_les.numerics import filters
from compressible_les.physics import constants

_CONFIG = config_flags.DEFINE_config_file(
    'config',
    None,
    'File path to the configuration of the grid and the SGS model.',
    lock_config=True,
)

# The width of the ghost layer on each side of the grid in every dimension.
HALO_WIDTH = 1

# The bounds of the dynamic coefficient. The lower bound prevents negative eddy
# viscosity, and the upper bound is from empirical Smagorinsky tuning.
_C_D_MIN = 0.0
_C_D_MAX = 0.15

# The regularization added to M:M in the dynamic coefficient.
_REGULARIZATION = 1e-12


class DeltaFormula(enum.Enum):
  """Formulations of the square of the grid filter width."""
  # Δ² = (dx dy dz)^(2/3).
  GEOMETRIC_MEAN = 0
  # Δ² = dx² + dy² + dz².
  DIAGONAL = 1


@dataclasses.dataclass(frozen=True)
class GridParametrization:
  """A uniform structured grid padded with one ghost layer.

  Indices 1 through `core_n[dim]` along each dimension are interior cells, and
  indices 0 and `core_n[dim] + 1` are the ghost cells.
  """
  # The number of interior cells in each dimension, i.e. (LEN, HIG, DEP).
  core_n: Tuple[int, int, int]
  # The uniform grid spacings (dx, dy, dz).
  grid_spacings: Tuple[float, float, float]

  def __post_init__(self):
    if len(self.core_n) != 3 or len(self.grid_spacings) != 3:
      raise ValueError(
          'Grid size and spacing need 3 components, got {} and {}.'.format(
              self.core_n, self.grid_spacings))
    if any(n <= 0 for n in self.core_n):
      raise ValueError(
          'The number of interior cells must be positive, got {}.'.format(
              self.core_n))
    if any(h <= 0.0 for h in self.grid_spacings):
      raise ValueError(
          'Grid spacings must be positive, got {}.'.format(self.grid_spacings))

  @property
  def halo_width(self) -> int:
    return HALO_WIDTH

  @property
  def shape(self) -> Tuple[int, int, int]:
    """The shape of a field with the ghost layer included."""
    return tuple(n + 2 * HALO_WIDTH for n in self.core_n)

  def cell_centers(self, dim: int) -> Tuple[float, ...]:
    """Coordinates of the cell centers in `dim`, ghost cells included.

    The first interior cell is centered at h / 2, so that the ghost cell at
    index 0 is centered at -h / 2.

    Args:
      dim: The dimension of the coordinates.

    Returns:
      The cell center coordinates for all indices along `dim`.
    """
    h = self.grid_spacings[dim]
    return tuple(
        (i - HALO_WIDTH) * h + 0.5 * h for i in range(self.shape[dim]))


@dataclasses.dataclass(frozen=True)
class SgsParameters:
  """Options of the dynamic Smagorinsky model."""
  # The 3-point stencil of the test filter.
  test_filter_kernel: Tuple[float, float, float] = filters.BOX_KERNEL
  # The bounds applied to the dynamic coefficient.
  c_d_min: float = _C_D_MIN
  c_d_max: float = _C_D_MAX
  # The small number that keeps the coefficient finite when M:M vanishes.
  regularization: float = _REGULARIZATION
  # The formulation of Δ², used if `filter_width_square` is not set.
  delta_formula: DeltaFormula = DeltaFormula.GEOMETRIC_MEAN
  # An explicit value for the square of the grid filter width Δ².
  filter_width_square: Optional[float] = None
  # The ratio between the test filter width and the grid filter width.
  test_filter_ratio: float = 2.0

  def __post_init__(self):
    if len(self.test_filter_kernel) != 3:
      raise ValueError(
          'The test filter kernel must have exactly 3 entries, got {}.'.format(
              self.test_filter_kernel))
    if self.c_d_min > self.c_d_max:
      raise ValueError(
          'Lower bound of the coefficient ({}) exceeds the upper bound '
          '({}).'.format(self.c_d_min, self.c_d_max))
    if self.regularization < 0.0:
      raise ValueError(
          'Regularization must be non-negative, got {}.'.format(
              self.regularization))
    if self.filter_width_square is not None and self.filter_width_square <= 0:
      raise ValueError(
          'Filter width square must be positive, got {}.'.format(
              self.filter_width_square))


@dataclasses.dataclass(frozen=True)
class GasParameters:
  """Properties of the ideal gas."""
  # The heat capacity ratio.
  gamma: float = constants.GAMMA
  # The specific gas constant, in units of J/kg/K.
  r_gas: float = constants.R_D


@dataclasses.dataclass(frozen=True)
class LesParameters:
  """The complete configuration consumed by the SGS closure."""
  grid: GridParametrization
  sgs: SgsParameters = SgsParameters()
  gas: GasParameters = GasParameters()

  @property
  def filter_width_square(self) -> float:
    """The square of the grid filter width Δ²."""
    if self.sgs.filter_width_square is not None:
      return self.sgs.filter_width_square

    dx, dy, dz = self.grid.grid_spacings
    match self.sgs.delta_formula:
      case DeltaFormula.GEOMETRIC_MEAN:
        return (dx * dy * dz)**(2.0 / 3.0)
      case DeltaFormula.DIAGONAL:
        return dx**2 + dy**2 + dz**2
      case _:
        raise ValueError(
            f'Unhandled DeltaFormula enum {self.sgs.delta_formula}.')

  @property
  def test_filter_width_square(self) -> float:
    """The square of the test filter width."""
    return self.sgs.test_filter_ratio**2 * self.filter_width_square

  @classmethod
  def create_from_grid_size_and_spacing(
      cls,
      core_n: Sequence[int],
      grid_spacings: Sequence[float],
      **sgs_options,
  ) -> 'LesParameters':
    """Creates parameters from the grid size, spacing, and SGS options.

    Args:
      core_n: The number of interior cells in the three dimensions.
      grid_spacings: The grid spacings in the three dimensions.
      **sgs_options: Keyword arguments that override defaults in
        `SgsParameters`.

    Returns:
      The `LesParameters` encapsulating the input arguments, with the default
      gas properties.
    """
    grid = GridParametrization(
        core_n=tuple(int(n) for n in core_n),
        grid_spacings=tuple(float(h) for h in grid_spacings))
    return cls(grid=grid, sgs=SgsParameters(**sgs_options))

  @classmethod
  def from_config(cls, config: ml_collections.ConfigDict) -> 'LesParameters':
    """Instantiates `LesParameters` from a `ConfigDict`.

    Args:
      config: A config with `grid`, `sgs`, and `gas` fields. The `sgs` and `gas`
        fields are optional, and missing entries fall back to the defaults.

    Returns:
      A `LesParameters` instance.

    Raises:
      ValueError: If `config.sgs.delta_formula` is not a `DeltaFormula` name.
    """
    grid = GridParametrization(
        core_n=tuple(int(n) for n in config.grid.core_n),
        grid_spacings=tuple(float(h) for h in config.grid.grid_spacings))

    sgs_kwargs = {}
    sgs_config = config.get('sgs', None)
    if sgs_config is not None:
      for key in ('c_d_min', 'c_d_max', 'regularization', 'test_filter_ratio'):
        if sgs_config.get(key, None) is not None:
          sgs_kwargs[key] = float(sgs_config[key])
      if sgs_config.get('test_filter_kernel', None) is not None:
        sgs_kwargs['test_filter_kernel'] = tuple(
            float(w) for w in sgs_config.test_filter_kernel)
      if sgs_config.get('filter_width_square', None) is not None:
        sgs_kwargs['filter_width_square'] = float(
            sgs_config.filter_width_square)
      if sgs_config.get('delta_formula', None) is not None:
        name = str(sgs_config.delta_formula).upper()
        if name not in DeltaFormula.__members__:
          raise ValueError(
              'Unknown delta formula {}. Available options: {}.'.format(
                  sgs_config.delta_formula, list(DeltaFormula.__members__)))
        sgs_kwargs['delta_formula'] = DeltaFormula[name]

    gas_kwargs = {}
    gas_config = config.get('gas', None)
    if gas_config is not None:
      for key in ('gamma', 'r_gas'):
        if gas_config.get(key, None) is not None:
          gas_kwargs[key] = float(gas_config[key])

    params = cls(
        grid=grid,
        sgs=SgsParameters(**sgs_kwargs),
        gas=GasParameters(**gas_kwargs))
    logging.info('LES parameters: %r', params)
    return params


def params_from_config_file_flag() -> LesParameters:
  """Returns parameters loaded from the --config flag."""
  if _CONFIG.value is None:
    raise ValueError('Flag --config is not set.')
  return LesParameters.from_config(_CONFIG.value)
