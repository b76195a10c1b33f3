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
"""Writes snapshots of the flow field in the Tecplot ASCII point format.

One file `<step>.plt` is written per call, with one line per interior cell in
the order of increasing i, then j, then k. Each line holds the cell center
coordinates, the primitive variables, the pressure, the temperature, and the
vorticity magnitude.
"""

import io
import os.path

from absl import logging
import numpy as np
from compressible_les.base import parameters as parameters_lib
from compressible_les.numerics import calculus
from compressible_les.utility import common_ops
from compressible_les.utility import types
import tensorflow as tf

FlowFieldVal = types.FlowFieldVal

# The variables in the output file, in the order of the columns.
_VARIABLES = ('y', 'z', 'rho', 'u', 'v', 'w', 'p', 'T', 'Vort. mag.')


def primitive_variables(
    state: types.FlowFieldMap,
    gas: parameters_lib.GasParameters,
) -> dict[str, FlowFieldVal]:
  """Derives the primitive variables from the conservative variables.

  The pressure follows the ideal gas law p = (γ - 1)(ρe - ρ|u|²/2), where ρe is
  the total energy per unit volume, and the temperature is T = p / (R ρ).

  Args:
    state: A mapping with the conservative variables `rho`, `rho_u`, `rho_v`,
      `rho_w`, and `rho_e`.
    gas: The properties of the ideal gas.

  Returns:
    A dictionary with `rho`, `u`, `v`, `w`, `p`, and `T`.

  Raises:
    KeyError: If a conservative variable is missing from `state`.
  """
  rho = state['rho']
  u = state['rho_u'] / rho
  v = state['rho_v'] / rho
  w = state['rho_w'] / rho
  p = (gas.gamma - 1.0) * (state['rho_e'] - 0.5 * rho * (u**2 + v**2 + w**2))
  t = p / (gas.r_gas * rho)
  return {'rho': rho, 'u': u, 'v': v, 'w': w, 'p': p, 'T': t}


def _header(core_n) -> str:
  """Generates the Tecplot file header for a single zone of point data."""
  lines = ['title     = " 3-D compressible case "', 'variables = " x "']
  lines += ['"{}"'.format(varname) for varname in _VARIABLES]
  lines += ['zone t=" "', 'i={}, j={}, k={}, f=point'.format(*core_n)]
  return '\n'.join(lines) + '\n'


def write_snapshot(
    output_dir: str,
    step: int,
    state: types.FlowFieldMap,
    params: parameters_lib.LesParameters,
) -> str:
  """Writes the interior of the flow field to `<output_dir>/<step>.plt`.

  Args:
    output_dir: The directory of the output file.
    step: The index of the time step, which is used as the file name.
    state: A mapping with the conservative variables `rho`, `rho_u`, `rho_v`,
      `rho_w`, and `rho_e`, with valid values in the ghost layer.
    params: The grid and gas configuration.

  Returns:
    The path of the file written.
  """
  grid = params.grid
  state = {
      varname: tf.convert_to_tensor(value, dtype_hint=types.TF_DTYPE)
      for varname, value in state.items()
  }
  primitive = primitive_variables(state, params.gas)
  primitive['Vort. mag.'] = calculus.vorticity_magnitude(
      (primitive['u'], primitive['v'], primitive['w']), grid.grid_spacings)

  halos = [grid.halo_width] * 3
  xx, yy, zz = np.meshgrid(
      *[np.array(grid.cell_centers(dim))[1:-1] for dim in (0, 1, 2)],
      indexing='ij')
  columns = [xx, yy, zz] + [
      np.asarray(common_ops.strip_halos(primitive[varname], halos))
      for varname in _VARIABLES[2:]
  ]
  # Points are ordered with i changing fastest, then j, then k.
  data = np.stack(
      [np.transpose(column, (2, 1, 0)).ravel() for column in columns], axis=1)

  buf = io.StringIO()
  buf.write(_header(grid.core_n))
  np.savetxt(buf, data, fmt='%g', delimiter=' ')

  if not tf.io.gfile.exists(output_dir):
    tf.io.gfile.makedirs(output_dir)
  path = os.path.join(output_dir, '{}.plt'.format(step))
  with tf.io.gfile.GFile(path, 'w') as f:
    f.write(buf.getvalue())

  logging.info('Snapshot of step %d written to `%s`.', step, path)
  return path
