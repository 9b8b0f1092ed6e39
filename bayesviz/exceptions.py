# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Custom exception classes for the bayesviz package.

All custom exceptions inherit from the base BayesVizError class so that every
package-specific failure can be caught with a single except clause. Errors that
result from an invalid option value additionally inherit from ValueError.
"""


class BayesVizError(Exception):
    """Base class for all exceptions in the bayesviz package.

    Example:
        >>> try:
        ...     bv.summarize_density(table)
        ... except BayesVizError as e:
        ...     print(f"bayesviz error occurred: {e}")
    """


class EmptyInputError(BayesVizError):
    """Raised when a sample table has no rows to summarize or plot."""


class ReshapeError(BayesVizError):
    """Raised when a sample table cannot be reshaped for plotting.

    This covers tables missing required columns, classification tables with an
    invalid layout, and parameters that have no classification when one was
    requested.
    """


class DensityEstimationError(BayesVizError):
    """Raised when a kernel density estimate cannot be computed for a sample.

    Kernel density estimation needs at least two finite values with non-zero
    variance.
    """


class UnknownCentralityError(BayesVizError, ValueError):
    """Raised when the requested centrality is not median, mean or MAP."""


class UnknownIntervalMethodError(BayesVizError, ValueError):
    """Raised when the requested credible interval method is not ETI or HDI."""


class InvalidIntervalMassError(BayesVizError, ValueError):
    """Raised when the credible mass of an interval is outside of (0, 1]."""
