# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Custom type definitions for bayesviz.

This module provides type aliases used in annotations across the package.
"""

from typing import Literal, Union

import numpy as np

# Scalar types
Integer = Union[int, np.integer]
"""Type alias for integer values.

Accepts both Python's built-in int and NumPy integer types.

:type: Union[int, np.integer]
"""

Float = Union[float, np.floating]
"""Type alias for floating-point values.

Accepts both Python's built-in float and NumPy floating-point types.

:type: Union[float, np.floating]
"""

# Option types
CentralityType = Literal["median", "mean", "MAP"]
"""Canonical names of the supported point estimates.

:type: Literal["median", "mean", "MAP"]
"""

IntervalMethodType = Literal["ETI", "HDI"]
"""Names of the supported credible interval methods.

:type: Literal["ETI", "HDI"]
"""
