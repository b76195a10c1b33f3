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
r"""Computes the dynamic Smagorinsky eddy viscosity for a saved flow state.

Example:
  python -m compressible_les.tools.eddy_viscosity_main \
    --config=compressible_les/configs/default.py \
    --input=/tmp/state.npz --output=/tmp/mu_sgs.npz \
    --snapshot_dir=/tmp/plt --step=100

The input `.npz` file has to provide `rho`, `rho_u`, `rho_v`, and `rho_w` on
the padded grid, and `rho_e` if a snapshot is requested.
"""

from collections.abc import Sequence

from absl import app
from absl import flags
from absl import logging
import numpy as np
from compressible_les.base import parameters as parameters_lib
from compressible_les.physics.turbulence import sgs_model
from compressible_les.utility import common_ops
from compressible_les.utility import file_io
from compressible_les.utility import tecplot_io

_INPUT = flags.DEFINE_string(
    'input', None, 'Path to the `.npz` file with the conservative variables.')
_OUTPUT = flags.DEFINE_string(
    'output', None,
    'Path to the `.npz` file where `mu_sgs` and `c_d` are written.')
_SNAPSHOT_DIR = flags.DEFINE_string(
    'snapshot_dir', None,
    'If set, a Tecplot snapshot of the input state is written to this '
    'directory.')
_STEP = flags.DEFINE_integer(
    'step', 0, 'The step index, used as the name of the snapshot file.')


def main(argv: Sequence[str]) -> None:
  if len(argv) > 1:
    raise app.UsageError('Too many command-line arguments.')
  if not _INPUT.value or not _OUTPUT.value:
    raise app.UsageError('Both --input and --output have to be set.')

  params = parameters_lib.params_from_config_file_flag()
  varnames = file_io.SGS_INPUT_VARIABLES
  if _SNAPSHOT_DIR.value:
    varnames += ('rho_e',)
  state = file_io.load_state(_INPUT.value, varnames)

  model = sgs_model.DynamicSmagorinsky(params)
  diagnostics = model.compute(
      state['rho'], state['rho_u'], state['rho_v'], state['rho_w'])

  halos = [params.grid.halo_width] * 3
  c_d = np.asarray(common_ops.strip_halos(diagnostics.c_d, halos))
  clipped = np.logical_or(c_d <= params.sgs.c_d_min, c_d >= params.sgs.c_d_max)
  logging.info(
      'Cd: min = %g, mean = %g, max = %g, fraction at the bounds = %g.',
      c_d.min(), c_d.mean(), c_d.max(), clipped.mean())

  file_io.save_fields(_OUTPUT.value, {
      'mu_sgs': diagnostics.eddy_viscosity,
      'c_d': diagnostics.c_d,
  })

  if _SNAPSHOT_DIR.value:
    tecplot_io.write_snapshot(_SNAPSHOT_DIR.value, _STEP.value, state, params)


def run():
  app.run(main)


if __name__ == '__main__':
  run()
