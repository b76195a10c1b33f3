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
"""Library for reading and writing named 3D fields."""

import io
from typing import Sequence

from absl import logging
import numpy as np
from compressible_les.utility import types
import tensorflow as tf

# The conservative variables required by the dynamic SGS model.
SGS_INPUT_VARIABLES = ('rho', 'rho_u', 'rho_v', 'rho_w')


def load_state(
    path: str,
    varnames: Sequence[str] = SGS_INPUT_VARIABLES,
) -> dict[str, tf.Tensor]:
  """Loads named fields from a `.npz` file.

  Args:
    path: The path of the `.npz` file.
    varnames: The names of the fields to be loaded.

  Returns:
    A dictionary mapping each name in `varnames` to a 3D tensor.

  Raises:
    KeyError: If any of `varnames` is not found in the file.
  """
  with tf.io.gfile.GFile(path, 'rb') as f:
    contents = io.BytesIO(f.read())

  with np.load(contents) as data:
    missing = [varname for varname in varnames if varname not in data.files]
    if missing:
      raise KeyError(
          'Variables {} are not found in `{}`. Available variables: {}.'.format(
              missing, path, data.files))
    state = {
        varname: tf.convert_to_tensor(data[varname], dtype_hint=types.TF_DTYPE)
        for varname in varnames
    }

  logging.info('Loaded %r from `%s`.', list(varnames), path)
  return state


def save_fields(
    path: str,
    fields: types.FlowFieldMap,
) -> None:
  """Saves named fields to a `.npz` file.

  Args:
    path: The path of the output file.
    fields: A mapping from the variable names to the fields to be saved.
  """
  buf = io.BytesIO()
  np.savez(
      buf, **{
          key: np.asarray(value, dtype=types.NP_DTYPE)
          for key, value in fields.items()
      })
  with tf.io.gfile.GFile(path, 'wb') as f:
    f.write(buf.getvalue())
  logging.info('Saved %r to `%s`.', list(fields.keys()), path)
