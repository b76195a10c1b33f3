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
r"""A library for separable filter operators.

A 3D filter with a rank-1 (tensor-product) kernel is applied as three
successive 1D convolutions, one along each dimension, so that each point costs
3 x 3 operations instead of 3^3. The 1D kernel `h` has 3 entries, and one pass
along dimension `dim` computes:
  \bar{f}_n = h_0 f_{n - 1} + h_1 f_n + h_2 f_{n + 1}.
The passes are applied in the order of dimension 1, 2, and 0, each reading the
output of the previous pass.
"""

from typing import Sequence

from absl import logging
from compressible_les.utility import common_ops
from compressible_les.utility import types
import tensorflow as tf

FlowFieldVal = types.FlowFieldVal

# The kernel of a box (top-hat) filter with a stencil width of 3.
BOX_KERNEL = (1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0)
# The kernel of a Gaussian-like filter with a stencil width of 3.
GAUSSIAN_KERNEL = (0.25, 0.5, 0.25)

# The order of dimensions in which the 1D passes are applied.
_PASS_ORDER = (1, 2, 0)


def _validate_kernel(kernel: Sequence[float]) -> None:
  """Checks that `kernel` is a 3-point stencil."""
  if len(kernel) != 3:
    raise ValueError(
        'Filter kernel must have exactly 3 entries. {} is not allowed.'.format(
            kernel))
  if abs(sum(kernel) - 1.0) > 1e-6:
    logging.log_first_n(
        logging.WARNING,
        'Filter kernel %r does not sum to 1. A constant field will not be '
        'preserved by the filter.', 1, kernel)


def _slice_in_dim(f: FlowFieldVal, dim: int, start: int,
                  end: int) -> FlowFieldVal:
  """Takes the slice [start, end) of `f` along `dim`."""
  indices = [slice(None)] * 3
  indices[dim] = slice(start, end)
  return f[tuple(indices)]


def filter_1d(
    f: FlowFieldVal,
    kernel: Sequence[float],
    dim: int,
) -> FlowFieldVal:
  """Applies a 3-point filter `kernel` to `f` along dimension `dim`.

  Args:
    f: A 3D tensor to be filtered.
    kernel: The 3 weights of the stencil, applied to the points at n - 1, n, and
      n + 1, respectively.
    dim: The dimension along which the filter is applied.

  Returns:
    The filtered field with the same shape as `f`. The first and last planes
    normal to `dim` keep the values of `f`, because the stencil is not
    complete there.

  Raises:
    ValueError: If `kernel` does not have 3 entries, or if `f` has fewer than 3
      points along `dim`.
  """
  _validate_kernel(kernel)
  n = common_ops.get_shape(f)[dim]
  if n < 3:
    raise ValueError(
        'At least 3 points are required along dim {} for filtering, got '
        '{}.'.format(dim, n))

  filtered = (
      kernel[0] * _slice_in_dim(f, dim, 0, n - 2) +
      kernel[1] * _slice_in_dim(f, dim, 1, n - 1) +
      kernel[2] * _slice_in_dim(f, dim, 2, n))
  return tf.concat(
      [_slice_in_dim(f, dim, 0, 1), filtered, _slice_in_dim(f, dim, n - 1, n)],
      axis=dim)


def filter_3d(
    f: FlowFieldVal,
    kernel: Sequence[float],
) -> FlowFieldVal:
  """Applies the separable 3D filter defined by the 1D `kernel` to `f`.

  Args:
    f: The 3D variable to be filtered. Values in the ghost layer must be valid.
    kernel: The 3-point 1D stencil of the filter, e.g. `BOX_KERNEL` or
      `GAUSSIAN_KERNEL`.

  Returns:
    The filtered variable with the same shape as `f`, with values in the
    outermost layer being unfiltered. `f` is not modified.

  Raises:
    ValueError: If `f` is not a 3D tensor, or if `kernel` does not have 3
      entries.
  """
  f = tf.convert_to_tensor(f)
  if f.shape.rank != 3:
    raise ValueError(
        'Only 3D fields can be filtered, got a field with shape {}.'.format(
            f.shape))

  g = f
  for dim in _PASS_ORDER:
    g = filter_1d(g, kernel, dim)

  return common_ops.replace_halos(g, f)


def test_filter(
    f: FlowFieldVal,
    kernel: Sequence[float] = BOX_KERNEL,
) -> FlowFieldVal:
  """Filters `f` with twice the grid filter width.

  Args:
    f: The 3D tensor to be filtered.
    kernel: The 3-point stencil of the test filter.

  Returns:
    Value filtered by the test filter, with unfiltered values in the outermost
    layer.
  """
  return filter_3d(f, kernel)
