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
r"""The dynamic Smagorinsky sub-grid scale model for compressible LES.

The Smagorinsky coefficient is determined locally from the resolved scales with
the Germano dynamic procedure [1], where the Germano identity is solved in the
least-squares sense as proposed by Lilly [2]:
  Cd = -1/2 Lᵢⱼ Mᵢⱼ / (Mᵢⱼ Mᵢⱼ + ε),
with
  Lᵢⱼ = \hat{uᵢuⱼ} - \hat{uᵢ}\hat{uⱼ} (deviatoric part only),
  Mᵢⱼ = \hat{Δ}² |\hat{S}| \hat{S}ᵢⱼ - Δ² \hat{|S| Sᵢⱼ},
where the hat denotes the test filter, which is twice as wide as the grid
filter, and \hat{S}ᵢⱼ is computed from the test filtered velocity. The eddy
viscosity is then:
  μₜ = ρ Cd Δ² |S|.

Note that the velocity is derived from the conservative variables, i.e. the
density and the momentum, which is expected as input.

[1] Germano, M., Piomelli, U., Moin, P. and Cabot, W. H., 1991. A dynamic
    subgrid-scale eddy viscosity model. Physics of Fluids A: Fluid Dynamics,
    3(7), pp.1760-1765.
[2] Lilly, D. K., 1992. A proposed modification of the Germano subgrid-scale
    closure method. Physics of Fluids A: Fluid Dynamics, 4(3), pp.633-635.
"""

from typing import NamedTuple, Optional, Sequence

from absl import logging
from compressible_les.base import parameters as parameters_lib
from compressible_les.numerics import calculus
from compressible_les.numerics import filters
from compressible_les.utility import common_ops
from compressible_les.utility import tensor_field
from compressible_les.utility import types
import tensorflow as tf

FlowFieldVal = types.FlowFieldVal
VectorField = types.VectorField
TensorField = tensor_field.TensorField

_CONSERVATIVE_VARIABLES = ('rho', 'rho_u', 'rho_v', 'rho_w')


class SgsDiagnostics(NamedTuple):
  """Intermediate and final results of one evaluation of the SGS model."""
  # The velocity derived from the conservative variables.
  velocity: VectorField
  # The test filtered velocity.
  velocity_filtered: VectorField
  # The strain rate tensor Sᵢⱼ at the grid scale.
  strain_rate: TensorField
  # The strain rate magnitude |S| at the grid scale.
  strain_rate_magnitude: FlowFieldVal
  # The deviatoric Leonard stress Lᵢⱼ.
  leonard_stress: TensorField
  # The model tensor Mᵢⱼ.
  model_tensor: TensorField
  # The clipped dynamic coefficient Cd.
  c_d: FlowFieldVal
  # The eddy viscosity μₜ. Values in the ghost layer are 0.
  eddy_viscosity: FlowFieldVal


def _dot(u_i: FlowFieldVal, u_j: FlowFieldVal) -> FlowFieldVal:
  """Computes the pointwise product between two 3D tensors."""
  return u_i * u_j


def _strain_rate_tensor(
    du_dx: Sequence[Sequence[FlowFieldVal]],) -> TensorField:
  """Computes the strain rate tensor based on velocity gradients.

  The strain rate is defined as Sₖₗ = 0.5 * (𝜕uₖ/𝜕xₗ + 𝜕uₗ/𝜕xₖ). The divergence
  is not removed.

  Args:
    du_dx: The velocity gradient tensor. The first index indicates the velocity
      component, and the second index indicates the direction.

  Returns:
    The strain rate tensor.
  """
  grad_u = TensorField.from_nested(du_dx)
  return (grad_u + grad_u.transpose()) * 0.5


class DynamicSmagorinsky(object):
  """The dynamic Smagorinsky model with Lilly's least-squares closure."""

  def __init__(self, params: parameters_lib.LesParameters):
    """Initializes the dynamic Smagorinsky model.

    Args:
      params: The grid and SGS model configuration.
    """
    self._params = params
    self._grid = params.grid
    self._sgs = params.sgs
    self._delta_square = params.filter_width_square
    self._test_delta_square = params.test_filter_width_square

    logging.info(
        'Dynamic Smagorinsky model: %r, with filter width square %g.',
        self._sgs, self._delta_square)

  @property
  def delta_square(self) -> float:
    """The square of the grid filter width Δ²."""
    return self._delta_square

  def _test_filter(self, value: FlowFieldVal) -> FlowFieldVal:
    """Filters `value` with the test filter."""
    return filters.test_filter(value, self._sgs.test_filter_kernel)

  def _interior(self, value: FlowFieldVal) -> FlowFieldVal:
    """Sets `value` to 0 in the ghost layer."""
    return common_ops.replace_halos(value, tf.zeros_like(value),
                                    self._grid.halo_width)

  def primitive_velocity(
      self,
      rho: FlowFieldVal,
      rho_u: FlowFieldVal,
      rho_v: FlowFieldVal,
      rho_w: FlowFieldVal,
  ) -> VectorField:
    """Derives the velocity from the conservative variables.

    The velocity is computed in the ghost layer as well, as it is required by
    the finite difference and the filter operations. The density is expected to
    be positive everywhere.

    Args:
      rho: The density.
      rho_u: The momentum in dim 0.
      rho_v: The momentum in dim 1.
      rho_w: The momentum in dim 2.

    Returns:
      The three velocity components.
    """
    rr = 1.0 / rho
    return (rho_u * rr, rho_v * rr, rho_w * rr)

  def strain_rate_tensor(self, velocity: Sequence[FlowFieldVal]) -> TensorField:
    """Computes the strain rate tensor in the interior cells."""
    return _strain_rate_tensor(
        calculus.grad(velocity, self._grid.grid_spacings))

  def strain_rate_magnitude(self, strain_rate: TensorField) -> FlowFieldVal:
    """Computes |S| = √(2 Sᵢⱼ Sᵢⱼ), with all 9 components included."""
    return strain_rate.magnitude()

  def leonard_stress(
      self,
      velocity: Sequence[FlowFieldVal],
      velocity_filtered: Sequence[FlowFieldVal],
  ) -> TensorField:
    """Computes the deviatoric part of the Leonard stress.

    Args:
      velocity: The three velocity components, with valid values in the ghost
        layer.
      velocity_filtered: The three test filtered velocity components.

    Returns:
      Lᵢⱼ - 1/3 Lₖₖ δᵢⱼ, with Lᵢⱼ = \\hat{uᵢuⱼ} - \\hat{uᵢ}\\hat{uⱼ}, in the
      interior cells. Values in the ghost layer are 0.
    """

    def resolved_stress(i, j):
      """Computes the resolved stress L_ij."""
      t_ij = self._test_filter(_dot(velocity[i], velocity[j]))
      tau_ij = _dot(velocity_filtered[i], velocity_filtered[j])
      return self._interior(t_ij - tau_ij)

    return TensorField.from_fn(resolved_stress).deviatoric()

  def model_tensor(
      self,
      strain_rate: TensorField,
      strain_rate_magnitude: FlowFieldVal,
      strain_rate_filtered: TensorField,
      strain_rate_magnitude_filtered: FlowFieldVal,
  ) -> TensorField:
    """Computes the model tensor Mᵢⱼ.

    Mᵢⱼ = \\hat{Δ}² Bᵢⱼ - Δ² \\hat{Aᵢⱼ}, where Aᵢⱼ = |S| Sᵢⱼ, Bᵢⱼ = |\\hat{S}|
    \\hat{S}ᵢⱼ, and \\hat{Δ} is the test filter width.

    Args:
      strain_rate: The strain rate tensor at the grid scale.
      strain_rate_magnitude: The magnitude of `strain_rate`.
      strain_rate_filtered: The strain rate tensor computed from the test
        filtered velocity.
      strain_rate_magnitude_filtered: The magnitude of `strain_rate_filtered`.

    Returns:
      The model tensor. Values in the ghost layer are 0.
    """
    a_ij = strain_rate * strain_rate_magnitude
    a_ij_filtered = a_ij.map(self._test_filter)
    b_ij = strain_rate_filtered * strain_rate_magnitude_filtered
    return (b_ij * self._test_delta_square -
            a_ij_filtered * self._delta_square)

  def dynamic_coefficient(
      self,
      leonard_stress: TensorField,
      model_tensor: TensorField,
  ) -> FlowFieldVal:
    """Solves for the coefficient Cd = -1/2 LᵢⱼMᵢⱼ / (MᵢⱼMᵢⱼ + ε).

    Args:
      leonard_stress: The deviatoric Leonard stress.
      model_tensor: The model tensor.

    Returns:
      The coefficient clipped to [`c_d_min`, `c_d_max`].
    """
    lm = leonard_stress.double_dot(model_tensor)
    mm = model_tensor.double_dot(model_tensor)
    c_d = -0.5 * tf.math.divide_no_nan(lm, mm + self._sgs.regularization)
    return tf.clip_by_value(c_d, self._sgs.c_d_min, self._sgs.c_d_max)

  def compute(
      self,
      rho: FlowFieldVal,
      rho_u: FlowFieldVal,
      rho_v: FlowFieldVal,
      rho_w: FlowFieldVal,
  ) -> SgsDiagnostics:
    """Evaluates the dynamic Smagorinsky model.

    Args:
      rho: The density.
      rho_u: The momentum in dim 0.
      rho_v: The momentum in dim 1.
      rho_w: The momentum in dim 2.

    Returns:
      All intermediate tensors and the eddy viscosity, which are valid in the
      interior cells.

    Raises:
      ValueError: If the shape of any input differs from the padded grid shape.
    """
    rho, rho_u, rho_v, rho_w = [
        tf.convert_to_tensor(f, dtype_hint=types.TF_DTYPE)
        for f in (rho, rho_u, rho_v, rho_w)
    ]
    common_ops.validate_fields((rho, rho_u, rho_v, rho_w), self._grid.shape,
                               _CONSERVATIVE_VARIABLES)

    velocity = self.primitive_velocity(rho, rho_u, rho_v, rho_w)
    velocity_filtered = tuple(self._test_filter(u_i) for u_i in velocity)

    s_ij = self.strain_rate_tensor(velocity)
    s = self.strain_rate_magnitude(s_ij)

    # The test filtered strain rate is derived from the test filtered velocity
    # instead of filtering the strain rate.
    s_ij_filtered = self.strain_rate_tensor(velocity_filtered)
    s_filtered = self.strain_rate_magnitude(s_ij_filtered)

    l_ij = self.leonard_stress(velocity, velocity_filtered)
    m_ij = self.model_tensor(s_ij, s, s_ij_filtered, s_filtered)

    c_d = self.dynamic_coefficient(l_ij, m_ij)
    mu_t = rho * c_d * self._delta_square * s

    return SgsDiagnostics(
        velocity=velocity,
        velocity_filtered=velocity_filtered,
        strain_rate=s_ij,
        strain_rate_magnitude=s,
        leonard_stress=l_ij,
        model_tensor=m_ij,
        c_d=c_d,
        eddy_viscosity=mu_t,
    )

  def eddy_viscosity(
      self,
      rho: FlowFieldVal,
      rho_u: FlowFieldVal,
      rho_v: FlowFieldVal,
      rho_w: FlowFieldVal,
      mu_sgs: Optional[FlowFieldVal] = None,
  ) -> FlowFieldVal:
    """Computes the eddy viscosity μₜ = ρ Cd Δ² |S| in the interior cells.

    Args:
      rho: The density.
      rho_u: The momentum in dim 0.
      rho_v: The momentum in dim 1.
      rho_w: The momentum in dim 2.
      mu_sgs: The eddy viscosity from the previous evaluation. Its values in the
        ghost layer are carried over to the output, so that the ghost layer is
        left for the boundary conditions to update. If `None`, the ghost layer
        of the output is 0.

    Returns:
      The eddy viscosity, with the interior cells updated.

    Raises:
      ValueError: If the shape of any input differs from the padded grid shape.
    """
    mu_t = self.compute(rho, rho_u, rho_v, rho_w).eddy_viscosity
    if mu_sgs is None:
      return mu_t

    mu_sgs = tf.convert_to_tensor(mu_sgs, dtype=mu_t.dtype)
    common_ops.validate_fields((mu_sgs,), self._grid.shape, ('mu_sgs',))
    return common_ops.replace_halos(mu_t, mu_sgs, self._grid.halo_width)
