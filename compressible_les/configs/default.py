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
"""Default configuration of the grid and the dynamic Smagorinsky model."""

import ml_collections
from ml_collections import config_dict


def get_config() -> ml_collections.ConfigDict:
  """Returns the default configuration."""
  config = ml_collections.ConfigDict()

  config.grid = ml_collections.ConfigDict()
  # The number of interior cells (LEN, HIG, DEP).
  config.grid.core_n = (32, 32, 32)
  # The uniform grid spacings (dx, dy, dz).
  config.grid.grid_spacings = (1.0 / 32.0, 1.0 / 32.0, 1.0 / 32.0)

  config.sgs = ml_collections.ConfigDict()
  config.sgs.test_filter_kernel = (1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0)
  config.sgs.c_d_min = 0.0
  config.sgs.c_d_max = 0.15
  config.sgs.regularization = 1e-12
  config.sgs.delta_formula = 'GEOMETRIC_MEAN'
  # Overrides `delta_formula` when set.
  config.sgs.filter_width_square = config_dict.placeholder(float)
  config.sgs.test_filter_ratio = 2.0

  config.gas = ml_collections.ConfigDict()
  config.gas.gamma = 1.4
  config.gas.r_gas = 286.69

  return config
