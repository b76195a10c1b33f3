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
"""Vector calculus operations with second-order centered differences."""

from typing import Sequence

from compressible_les.utility import common_ops
from compressible_les.utility import types
import tensorflow as tf

FlowFieldVal = types.FlowFieldVal


def deriv_centered(
    f: FlowFieldVal,
    dim: int,
    h: float,
) -> FlowFieldVal:
  """Computes the centered difference (f[n + 1] - f[n - 1]) / (2 h) in `dim`.

  Args:
    f: A 3D tensor with valid values in the ghost layer.
    dim: The dimension of the derivative.
    h: The uniform grid spacing in `dim`.

  Returns:
    The derivative of `f` in the interior cells. Values in the ghost layer are
    0.
  """
  inv_two_h = 0.5 / h
  if dim == 0:
    df = (f[2:, 1:-1, 1:-1] - f[:-2, 1:-1, 1:-1]) * inv_two_h
  elif dim == 1:
    df = (f[1:-1, 2:, 1:-1] - f[1:-1, :-2, 1:-1]) * inv_two_h
  elif dim == 2:
    df = (f[1:-1, 1:-1, 2:] - f[1:-1, 1:-1, :-2]) * inv_two_h
  else:
    raise ValueError('Dimension {} is not one of 0, 1, 2.'.format(dim))

  return common_ops.pad(df, [[1, 1], [1, 1], [1, 1]], 0.0)


def grad(
    field_vars: Sequence[FlowFieldVal],
    grid_spacings: types.FloatSequence,
) -> Sequence[Sequence[FlowFieldVal]]:
  """Computes the gradient for all variables in `field_vars`.

  Args:
    field_vars: A list of 3D tensor variables.
    grid_spacings: The grid spacings in the three dimensions.

  Returns:
    The gradients of all variables in `field_vars`. The first index of the
    returned structure indicates the variable sequence, and the second index
    is the direction of the gradient, which can only be 0, 1, and 2.
  """
  return [
      [deriv_centered(f, dim, grid_spacings[dim]) for dim in (0, 1, 2)]
      for f in field_vars
  ]


def vorticity_magnitude(
    velocity: Sequence[FlowFieldVal],
    grid_spacings: types.FloatSequence,
) -> FlowFieldVal:
  """Computes the magnitude of the rotation rate tensor.

  The rotation rate is Ωₖₗ = 0.5 (∂uₗ/∂xₖ - ∂uₖ/∂xₗ), and the magnitude is
  √(Ω₀₁² + Ω₀₂² + Ω₁₂²).

  Args:
    velocity: The three velocity components.
    grid_spacings: The grid spacings in the three dimensions.

  Returns:
    The vorticity magnitude in the interior cells, 0 in the ghost layer.

  Raises:
    ValueError: If `velocity` does not have 3 components.
  """
  if len(velocity) != 3:
    raise ValueError(
        'The velocity has to have exactly 3 components, {} is given.'.format(
            len(velocity)))

  du_dx = grad(velocity, grid_spacings)
  omega_01 = 0.5 * (du_dx[1][0] - du_dx[0][1])
  omega_02 = 0.5 * (du_dx[2][0] - du_dx[0][2])
  omega_12 = 0.5 * (du_dx[2][1] - du_dx[1][2])
  return tf.math.sqrt(omega_01**2 + omega_02**2 + omega_12**2)
