# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Kernel density estimation of posterior samples.

This module converts posterior samples held in a variety of containers into
flat, per-parameter arrays and evaluates a Gaussian kernel density estimate for
each of them. The result is the long-format sample table consumed by
:py:func:`bayesviz.summary.summarize_density` and the plotting functions.

Supported containers:
    - One-dimensional arrays or sequences (a single, unnamed distribution)
    - Mappings from parameter name to array
    - Wide DataFrames with one numeric column per parameter
    - Long DataFrames with "Parameter" and "x" columns
    - ArviZ InferenceData objects, where multi-dimensional variables are
      flattened into one entry per element (e.g. ``beta[0]``, ``beta[1]``)
"""

from __future__ import annotations

import itertools

from typing import Mapping, Optional, Sequence, Union

import arviz as az
import numpy as np
import numpy.typing as npt
import pandas as pd

from scipy import stats

from bayesviz import custom_types
from bayesviz.defaults import (
    DEFAULT_BANDWIDTH,
    DEFAULT_EXTEND_SCALE,
    DEFAULT_PRECISION,
    DISTRIBUTION_LABEL,
)
from bayesviz.exceptions import (
    DensityEstimationError,
    EmptyInputError,
    ReshapeError,
)

# Types
SampleSource = Union[
    az.InferenceData, pd.DataFrame, pd.Series, Mapping, np.ndarray, Sequence
]

# Dimensions pooled into a single sample axis when flattening InferenceData
_SAMPLE_DIMS = ("chain", "draw")


def _flatten_inference_group(
    inference_obj: az.InferenceData,
    group: str,
    var_names: Optional[Sequence[str]],
) -> dict[str, npt.NDArray]:
    """Flatten one group of an InferenceData object into per-element samples.

    Chain and draw dimensions are pooled. Every remaining dimension is indexed
    by its coordinate values, giving labels of the form ``name[c1, c2]``.
    """
    if group not in inference_obj.groups():
        raise ReshapeError(f"InferenceData object has no '{group}' group.")
    dataset = getattr(inference_obj, group)

    flattened = {}
    for varname in var_names or list(dataset.data_vars):
        if varname not in dataset.data_vars:
            raise ReshapeError(f"Variable '{varname}' not found in group '{group}'.")
        data_array = dataset[varname]

        # Move the sample dimensions to the end so that each element of the
        # remaining dimensions owns a contiguous block of draws
        sample_dims = [dim for dim in _SAMPLE_DIMS if dim in data_array.dims]
        element_dims = [dim for dim in data_array.dims if dim not in sample_dims]
        values = data_array.transpose(*element_dims, *sample_dims).to_numpy()

        # Scalars keep their variable name
        if not element_dims:
            flattened[varname] = values.ravel().astype(float)
            continue

        # Everything else is labeled by its coordinates
        coords = [data_array[dim].to_numpy() for dim in element_dims]
        for index in itertools.product(*(range(len(c)) for c in coords)):
            label = ", ".join(str(c[i]) for c, i in zip(coords, index))
            flattened[f"{varname}[{label}]"] = values[index].ravel().astype(float)

    return flattened


def extract_samples(
    samples: SampleSource,
    group: str = "posterior",
    var_names: Optional[Sequence[str]] = None,
) -> dict[str, npt.NDArray]:
    """Extract flat, per-parameter sample arrays from a sample container.

    :param samples: Container of posterior samples. See the module docstring
        for the supported types.
    :type samples: SampleSource
    :param group: InferenceData group to read. Ignored for other containers.
        (Default: "posterior")
    :type group: str
    :param var_names: Parameters to keep. All are kept when None. For
        InferenceData, these are variable names before flattening.
        (Default: None)
    :type var_names: Optional[Sequence[str]]

    :returns: Mapping from parameter label to a 1D float array, in the order
        the parameters appear in the container
    :rtype: dict[str, npt.NDArray]

    :raises ReshapeError: If the container cannot be interpreted or a requested
        parameter is missing

    Example:
        >>> extract_samples({"a": [1.0, 2.0], "b": [3.0, 4.0]})
        {'a': array([1., 2.]), 'b': array([3., 4.])}
    """
    if isinstance(samples, az.InferenceData):
        return _flatten_inference_group(samples, group, var_names)

    # Long DataFrames are grouped by parameter, wide DataFrames are read by column
    if isinstance(samples, pd.DataFrame):
        if {"Parameter", "x"} <= set(samples.columns):
            extracted = {
                str(name): subdf["x"].to_numpy(dtype=float)
                for name, subdf in samples.groupby("Parameter", sort=False)
            }
        else:
            numeric = samples.select_dtypes(include="number")
            if numeric.shape[1] == 0:
                raise ReshapeError("DataFrame has no numeric columns to extract.")
            extracted = {
                str(colname): numeric[colname].to_numpy(dtype=float)
                for colname in numeric.columns
            }

    elif isinstance(samples, pd.Series):
        extracted = {
            str(samples.name or DISTRIBUTION_LABEL): samples.to_numpy(dtype=float)
        }

    elif isinstance(samples, Mapping):
        extracted = {
            str(name): np.asarray(values, dtype=float).ravel()
            for name, values in samples.items()
        }

    # Anything else must be a single 1D distribution
    else:
        array = np.asarray(samples, dtype=float)
        if array.ndim != 1:
            raise ReshapeError(
                f"Unnamed samples must be one-dimensional. Got {array.ndim} dimensions."
            )
        extracted = {DISTRIBUTION_LABEL: array}

    # Filter if requested
    if var_names is not None:
        missing = [name for name in var_names if name not in extracted]
        if missing:
            raise ReshapeError(f"Parameters not found in samples: {missing}")
        extracted = {name: extracted[name] for name in var_names}

    return extracted


def _is_unnamed(samples: SampleSource) -> bool:
    """Bare arrays and sequences carry no parameter name."""
    return not isinstance(
        samples, (az.InferenceData, pd.DataFrame, pd.Series, Mapping)
    )


def samples_to_frame(
    samples: SampleSource,
    group: str = "posterior",
    var_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Long-format table of raw samples with columns "Parameter" and "x".

    As with `estimate_density`, the "Parameter" column is omitted for bare
    arrays.
    """
    extracted = extract_samples(samples, group=group, var_names=var_names)
    if not extracted:
        raise EmptyInputError("No samples were provided.")

    samples_df = pd.concat(
        [
            pd.DataFrame({"Parameter": paramname, "x": values})
            for paramname, values in extracted.items()
        ],
        ignore_index=True,
    )
    if _is_unnamed(samples):
        return samples_df.drop(columns="Parameter")

    return samples_df


def kde_curve(
    values: npt.NDArray,
    precision: custom_types.Integer = DEFAULT_PRECISION,
    extend: bool = False,
    extend_scale: custom_types.Float = DEFAULT_EXTEND_SCALE,
    bw: Union[str, custom_types.Float] = DEFAULT_BANDWIDTH,
) -> tuple[npt.NDArray, npt.NDArray]:
    """Evaluate a Gaussian kernel density estimate on an evenly spaced grid.

    :param values: Samples of a single parameter. Non-finite values are ignored.
    :type values: npt.NDArray
    :param precision: Number of grid points. (Default: 1024)
    :type precision: custom_types.Integer
    :param extend: Whether to extend the grid beyond the sample range.
        (Default: False)
    :type extend: bool
    :param extend_scale: Fraction of the sample range added on each side when
        `extend` is True. (Default: 0.1)
    :type extend_scale: custom_types.Float
    :param bw: Bandwidth rule or factor passed to `scipy.stats.gaussian_kde`.
        (Default: "scott")
    :type bw: Union[str, custom_types.Float]

    :returns: Tuple of (grid, density) arrays, each of length `precision`
    :rtype: tuple[npt.NDArray, npt.NDArray]

    :raises DensityEstimationError: If fewer than two finite values remain or
        they have zero variance
    """
    if precision < 2:
        raise ValueError("`precision` must be at least 2.")

    finite = values[np.isfinite(values)]
    if finite.size < 2:
        raise DensityEstimationError(
            "At least two finite samples are needed to estimate a density."
        )
    lower, upper = finite.min(), finite.max()
    if lower == upper:
        raise DensityEstimationError(
            "Cannot estimate the density of samples with zero variance."
        )

    # Extend the grid if requested
    if extend:
        padding = (upper - lower) * extend_scale
        lower, upper = lower - padding, upper + padding

    grid = np.linspace(lower, upper, int(precision))
    return grid, stats.gaussian_kde(finite, bw_method=bw)(grid)


def estimate_density(
    samples: SampleSource,
    precision: custom_types.Integer = DEFAULT_PRECISION,
    extend: bool = False,
    extend_scale: custom_types.Float = DEFAULT_EXTEND_SCALE,
    bw: Union[str, custom_types.Float] = DEFAULT_BANDWIDTH,
    group: str = "posterior",
    var_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Estimate the density of each parameter in a sample container.

    :param samples: Container of posterior samples. See `extract_samples`.
    :type samples: SampleSource
    :param precision: Number of grid points per parameter. (Default: 1024)
    :type precision: custom_types.Integer
    :param extend: Whether to extend each grid beyond its sample range.
        (Default: False)
    :type extend: bool
    :param extend_scale: Fraction of the range added on each side when
        extending. (Default: 0.1)
    :type extend_scale: custom_types.Float
    :param bw: Bandwidth rule or factor for `scipy.stats.gaussian_kde`.
        (Default: "scott")
    :type bw: Union[str, custom_types.Float]
    :param group: InferenceData group to read. (Default: "posterior")
    :type group: str
    :param var_names: Parameters to keep. (Default: None, all parameters)
    :type var_names: Optional[Sequence[str]]

    :returns: Long-format table with columns "x" and "y", plus "Parameter"
        unless the input was a bare array
    :rtype: pd.DataFrame

    Example:
        >>> densities = estimate_density({"mu": mu_draws, "sigma": sigma_draws})
        >>> densities.columns.tolist()
        ['Parameter', 'x', 'y']
    """
    extracted = extract_samples(samples, group=group, var_names=var_names)
    if not extracted:
        raise EmptyInputError("No samples were provided to estimate densities from.")

    # Build a density curve for each parameter
    sub_dfs = [None] * len(extracted)
    for i, (paramname, values) in enumerate(extracted.items()):
        grid, density = kde_curve(
            values, precision=precision, extend=extend, extend_scale=extend_scale, bw=bw
        )
        sub_dfs[i] = pd.DataFrame({"Parameter": paramname, "x": grid, "y": density})
    density_df = pd.concat(sub_dfs, ignore_index=True)

    # Bare arrays do not name their parameter
    if _is_unnamed(samples):
        return density_df.drop(columns="Parameter")

    return density_df


def estimate_grouped_density(
    samples_df: pd.DataFrame,
    by: Sequence[str],
    precision: custom_types.Integer = DEFAULT_PRECISION,
    extend: bool = False,
    extend_scale: custom_types.Float = DEFAULT_EXTEND_SCALE,
    bw: Union[str, custom_types.Float] = DEFAULT_BANDWIDTH,
) -> pd.DataFrame:
    """Estimate one density per bucket of a long-format sample table.

    Unlike `estimate_density`, rows of the same parameter that differ in any of
    the `by` columns (e.g. "Effects" or "Component") get separate curves, and
    the values of the `by` columns are kept on every grid point. Missing values
    in the `by` columns form buckets of their own.

    :param samples_df: Table with an "x" column and all `by` columns
    :type samples_df: pd.DataFrame
    :param by: Columns defining the buckets
    :type by: Sequence[str]

    The remaining parameters are as in `kde_curve`.

    :returns: Table with the `by` columns followed by "x" and "y"
    :rtype: pd.DataFrame

    :raises EmptyInputError: If the table has no rows
    :raises ReshapeError: If "x" or one of the `by` columns is missing
    """
    columns = list(by)
    missing = [col for col in columns + ["x"] if col not in samples_df.columns]
    if missing:
        raise ReshapeError(f"Sample table is missing columns: {missing}")
    if len(samples_df) == 0:
        raise EmptyInputError("No samples were provided to estimate densities from.")

    sub_dfs = []
    for keys, bucket in samples_df.groupby(
        columns, sort=False, dropna=False, observed=True
    ):
        grid, density = kde_curve(
            bucket["x"].to_numpy(dtype=float),
            precision=precision,
            extend=extend,
            extend_scale=extend_scale,
            bw=bw,
        )
        labels = dict(zip(columns, keys if isinstance(keys, tuple) else (keys,)))
        sub_dfs.append(pd.DataFrame({"x": grid, "y": density}).assign(**labels))

    return pd.concat(sub_dfs, ignore_index=True)[columns + ["x", "y"]]
