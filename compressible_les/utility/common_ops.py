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
"""Common operations on 3D fields with a halo layer."""

from typing import Sequence, Tuple

from compressible_les.utility import types
import tensorflow as tf

FlowFieldVal = types.FlowFieldVal


def get_shape(f: FlowFieldVal) -> Tuple[int, int, int]:
  """Returns the static shape of a 3D field as a tuple of integers."""
  return tuple(f.get_shape().as_list())


def strip_halos(
    f: FlowFieldVal,
    halos: Sequence[int],
) -> FlowFieldVal:
  """Removes the halos from the input field.

  Args:
    f: A 3D `tf.Tensor` with shape [nx, ny, nz], halos included.
    halos: The width of the (symmetric) halos for each dimension, in the form
      of [halo_x, halo_y, halo_z].

  Returns:
    The inner part of the field with the halo region removed.
  """
  nx, ny, nz = get_shape(f)
  return f[halos[0]:nx - halos[0], halos[1]:ny - halos[1],
           halos[2]:nz - halos[2]]


def pad(
    f: FlowFieldVal,
    paddings: Sequence[Sequence[int]],
    value: float = 0.0,
) -> FlowFieldVal:
  """Pads the input field with a given value.

  Args:
    f: A 3D `tf.Tensor` with shape [nx, ny, nz].
    paddings: The padding lengths for each dimension in the format: [[pad_x_low,
      pad_x_hi], [pad_y_low, pad_y_hi], [pad_z_low, pad_z_hi]].
    value: The constant value to be used for padding.

  Returns:
    The padded input field.
  """
  return tf.pad(f, paddings, constant_values=value)


def interior_mask(
    shape: Sequence[int],
    halo_width: int = 1,
) -> tf.Tensor:
  """Generates a boolean mask that is `True` only away from the halos."""
  core = [n - 2 * halo_width for n in shape]
  return tf.pad(
      tf.constant(True, shape=core),
      paddings=[[halo_width, halo_width]] * 3,
      mode='CONSTANT',
      constant_values=False)


def replace_halos(
    interior_source: FlowFieldVal,
    halo_source: FlowFieldVal,
    halo_width: int = 1,
) -> FlowFieldVal:
  """Combines the interior of one field with the halos of another.

  Args:
    interior_source: The field that provides values away from the halos.
    halo_source: The field that provides values in the halos.
    halo_width: The width of the halos.

  Returns:
    A new field with the interior of `interior_source` and the halos of
    `halo_source`.
  """
  mask = interior_mask(get_shape(interior_source), halo_width)
  return tf.where(mask, interior_source, halo_source)


def validate_fields(
    fields: Sequence[FlowFieldVal],
    shape: Sequence[int],
    names: Sequence[str],
) -> None:
  """Checks that all `fields` are 3D tensors with the expected `shape`.

  Args:
    fields: The fields to be checked.
    shape: The expected shape of every field, halos included.
    names: The names of the fields, used in the error message.

  Raises:
    ValueError: If any field is not 3D or its shape differs from `shape`.
  """
  for name, f in zip(names, fields):
    f_shape = tuple(f.get_shape().as_list())
    if f_shape != tuple(shape):
      raise ValueError(
          'Field `{}` has shape {}, but {} is expected.'.format(
              name, f_shape, tuple(shape)))
