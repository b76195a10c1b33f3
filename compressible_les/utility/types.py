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
"""Commonly used types in the LES closure library."""

from typing import Mapping, Sequence, Tuple, TypeAlias

import numpy as np
import tensorflow as tf

# Note that np.float{n} needs to match with the tf.float{n} here.
TF_DTYPE = tf.float64
NP_DTYPE = np.float64

# A scalar field on the padded grid, indexed as [i, j, k] <-> (x, y, z).
FlowFieldVal: TypeAlias = tf.Tensor
FlowFieldMap: TypeAlias = Mapping[str, tf.Tensor]

VectorField = Tuple[FlowFieldVal, FlowFieldVal, FlowFieldVal]
# A 3 x 3 nested list of scalar fields, with the first index being the row.
NestedTensorField = Sequence[Sequence[FlowFieldVal]]

FloatSequence = Sequence[float]
