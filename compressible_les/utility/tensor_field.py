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
"""A container for rank-2 tensors defined at every point of a 3D grid.

The nine components are stored as a single 5D tensor with shape
[3, 3, nx, ny, nz], so that contractions between tensors are performed with
`tf.einsum` rather than component by component.
"""

from typing import Callable, Tuple, Union

from compressible_les.utility import types
import tensorflow as tf

FlowFieldVal = types.FlowFieldVal
NestedTensorField = types.NestedTensorField


class TensorField(object):
  """A rank-2 tensor field indexed by (row, column)."""

  def __init__(self, components: tf.Tensor):
    """Initializes the tensor field.

    Args:
      components: A 5D tensor with shape [3, 3, nx, ny, nz], where
        `components[i, j]` is the 3D field of the (i, j) component.

    Raises:
      ValueError: If `components` does not have a shape of [3, 3, nx, ny, nz].
    """
    components = tf.convert_to_tensor(components)
    if (components.shape.rank != 5 or
        tuple(components.shape[:2].as_list()) != (3, 3)):
      raise ValueError(
          'A tensor field requires components with shape [3, 3, nx, ny, nz], '
          'got {}.'.format(components.shape))
    self._components = components

  @classmethod
  def from_nested(cls, nested: NestedTensorField) -> 'TensorField':
    """Creates a tensor field from a 3 x 3 nested list of 3D fields."""
    if len(nested) != 3 or any(len(row) != 3 for row in nested):
      raise ValueError('Dimension mismatch: a 3 x 3 nested list is required.')
    return cls(tf.stack([tf.stack(list(row)) for row in nested]))

  @classmethod
  def from_fn(cls, fn: Callable[[int, int], FlowFieldVal]) -> 'TensorField':
    """Creates a tensor field with the (i, j) component being `fn(i, j)`."""
    return cls.from_nested([[fn(i, j) for j in range(3)] for i in range(3)])

  @property
  def components(self) -> tf.Tensor:
    return self._components

  @property
  def field_shape(self) -> Tuple[int, int, int]:
    return tuple(self._components.shape[2:].as_list())

  def __getitem__(self, index: Tuple[int, int]) -> FlowFieldVal:
    i, j = index
    return self._components[i, j]

  def __add__(self, other: 'TensorField') -> 'TensorField':
    return TensorField(self._components + other.components)

  def __sub__(self, other: 'TensorField') -> 'TensorField':
    return TensorField(self._components - other.components)

  def __mul__(self, factor: Union[float, FlowFieldVal]) -> 'TensorField':
    """Multiplies all components with a constant or a 3D field."""
    if isinstance(factor, (int, float)):
      return TensorField(factor * self._components)
    return TensorField(self._components * factor[tf.newaxis, tf.newaxis, ...])

  __rmul__ = __mul__

  def map(self, fn: Callable[[FlowFieldVal], FlowFieldVal]) -> 'TensorField':
    """Applies `fn` to each of the 9 components independently."""
    return TensorField.from_fn(lambda i, j: fn(self[i, j]))

  def transpose(self) -> 'TensorField':
    return TensorField(tf.transpose(self._components, (1, 0, 2, 3, 4)))

  def trace(self) -> FlowFieldVal:
    return self[0, 0] + self[1, 1] + self[2, 2]

  def deviatoric(self) -> 'TensorField':
    """Removes the isotropic part, i.e. T_ij - 1/3 T_kk δ_ij."""
    identity = tf.eye(3, dtype=self._components.dtype)
    isotropic = (
        identity[..., tf.newaxis, tf.newaxis, tf.newaxis] *
        (self.trace() / 3.0)[tf.newaxis, tf.newaxis, ...])
    return TensorField(self._components - isotropic)

  def double_dot(self, other: 'TensorField') -> FlowFieldVal:
    """Computes the full contraction T_ij O_ij summed over all 9 pairs.

    Args:
      other: The tensor field to be contracted with.

    Returns:
      The contraction as a 3D field.

    Raises:
      ValueError: If the shapes of the two tensor fields mismatch.
    """
    if self.field_shape != other.field_shape:
      raise ValueError(
          'Dimension mismatch: {} vs {}.'.format(self.field_shape,
                                                 other.field_shape))
    return tf.einsum('ijabc,ijabc->abc', self._components, other.components)

  def magnitude(self) -> FlowFieldVal:
    """Computes √(2 T_ij T_ij), summed over all 9 components."""
    return tf.math.sqrt(2.0 * self.double_dot(self))
