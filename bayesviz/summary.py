# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Summaries of posterior density tables for plotting.

This module prepares long-format sample tables for the density plots in
:py:mod:`bayesviz.plotting`. The central function, `summarize_density`, takes a
table of sampled (or density grid) values per parameter, optionally classifies
the parameters using a model reference, and computes a point estimate and a
credible interval for every parameter/effects/component combination.

The result is returned as a `DensityPlotData` object bundling:
    - samples: the reshaped sample table
    - summary: one row per group with columns "x", "CI_low" and "CI_high"
    - metadata: axis, legend and title labels (`PlotInfo`)
    - schema: which optional columns the sample table carries (`SampleSchema`)

Both tables share the same ordered categorical "Parameter" column, with levels
in reverse order of first appearance in the sample table. Plotting code relies
on this to align density curves with their summary overlays.
"""

from __future__ import annotations

import warnings

from dataclasses import asdict, dataclass, field
from typing import Iterable, Optional, Union

import arviz as az
import numpy as np
import numpy.typing as npt
import pandas as pd

from bayesviz import custom_types
from bayesviz.defaults import (
    CENTRALITY_ALIASES,
    DEFAULT_CENTRALITY,
    DEFAULT_CI,
    DEFAULT_CI_METHOD,
    DEFAULT_PLOT_INFO,
    DISTRIBUTION_LABEL,
    GROUPING_COLUMNS,
)
from bayesviz.density import kde_curve
from bayesviz.exceptions import (
    EmptyInputError,
    InvalidIntervalMassError,
    ReshapeError,
    UnknownCentralityError,
    UnknownIntervalMethodError,
)
from bayesviz.parameters import (
    fix_facet_names,
    merge_classification,
    split_facet_names,
)


@dataclass(frozen=True)
class PlotInfo:
    """Axis, legend and title labels used when rendering density data."""

    xlab: str = DEFAULT_PLOT_INFO["xlab"]
    ylab: str = DEFAULT_PLOT_INFO["ylab"]
    legend_fill: str = DEFAULT_PLOT_INFO["legend_fill"]
    legend_color: str = DEFAULT_PLOT_INFO["legend_color"]
    title: str = DEFAULT_PLOT_INFO["title"]

    def to_dict(self) -> dict[str, str]:
        """Return the labels as a plain dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class SampleSchema:
    """Optional columns present in a sample table.

    The schema is read once from the table and then used to decide which
    columns group the summary and which columns facet the plots.

    :ivar has_effects: Whether an "Effects" column is present
    :ivar has_component: Whether a "Component" column is present
    :ivar has_group: Whether "Group" and "Label" columns are present
    :ivar has_density: Whether a "y" density column is present
    """

    has_effects: bool = False
    has_component: bool = False
    has_group: bool = False
    has_density: bool = False

    @classmethod
    def from_frame(cls, plot_df: pd.DataFrame) -> SampleSchema:
        """Build the schema describing a sample table."""
        return cls(
            has_effects="Effects" in plot_df.columns,
            has_component="Component" in plot_df.columns,
            has_group="Group" in plot_df.columns,
            has_density="y" in plot_df.columns,
        )

    @property
    def facet_columns(self) -> tuple[str, ...]:
        """Present columns, among "Effects" and "Component", usable as facets."""
        return tuple(
            col
            for col, present in zip(
                GROUPING_COLUMNS[1:], (self.has_effects, self.has_component)
            )
            if present
        )

    @property
    def grouping_columns(self) -> tuple[str, ...]:
        """Columns defining one summary row, in order of precedence."""
        return (GROUPING_COLUMNS[0],) + self.facet_columns


@dataclass
class DensityPlotData:
    """Sample table bundled with its summary table and plot labels.

    :ivar samples: Sample table with an ordered categorical "Parameter" column
    :ivar summary: One row per group with the point estimate ("x") and the
        credible interval bounds ("CI_low", "CI_high")
    :ivar metadata: Labels used for rendering
    :ivar schema: Optional columns present in `samples`
    """

    samples: pd.DataFrame
    summary: pd.DataFrame
    metadata: PlotInfo = field(default_factory=PlotInfo)
    schema: SampleSchema = field(default_factory=SampleSchema)

    def plot(self, **kwargs):
        """Plot the density data. See `bayesviz.plotting.plot_estimate_density`."""
        # pylint: disable=import-outside-toplevel
        from bayesviz.plotting import plot_estimate_density

        return plot_estimate_density(self, **kwargs)


def validate_centrality(centrality: str) -> custom_types.CentralityType:
    """Return the canonical name of a centrality option.

    :raises UnknownCentralityError: If the option is not median, mean or MAP
        (case-insensitive, with "mode" accepted as an alias of MAP)
    """
    canonical = CENTRALITY_ALIASES.get(centrality.lower())
    if canonical is None:
        raise UnknownCentralityError(
            f"Unknown centrality '{centrality}'. Options are 'median', 'mean' "
            "and 'MAP'."
        )
    return canonical


def validate_ci(ci: custom_types.Float) -> float:
    """Check that a credible mass lies in (0, 1].

    :raises InvalidIntervalMassError: If it does not
    """
    if not 0 < ci <= 1:
        raise InvalidIntervalMassError(
            f"Credible interval mass must be in (0, 1]. Got {ci}."
        )
    return float(ci)


def validate_ci_method(ci_method: str) -> custom_types.IntervalMethodType:
    """Return the canonical name of a credible interval method.

    :raises UnknownIntervalMethodError: If the method is not ETI or HDI
    """
    canonical = ci_method.upper()
    if canonical not in ("ETI", "HDI"):
        raise UnknownIntervalMethodError(
            f"Unknown interval method '{ci_method}'. Options are 'ETI' and 'HDI'."
        )
    return canonical


def map_estimate(values: npt.NDArray) -> float:
    """Maximum a posteriori estimate of a sample.

    The mode of a Gaussian kernel density estimate evaluated on a fixed grid.
    No randomness is involved, so the estimate is reproducible. Constant
    samples return their single value.
    """
    if values.size == 1 or values.min() == values.max():
        return float(values[0])
    grid, density = kde_curve(values)
    return float(grid[np.argmax(density)])


def point_estimate(
    values: npt.NDArray, centrality: str = DEFAULT_CENTRALITY
) -> float:
    """Compute a point estimate of a sample.

    :param values: Finite sample values
    :type values: npt.NDArray
    :param centrality: "median", "mean" or "MAP". (Default: "median")
    :type centrality: str

    :returns: The point estimate
    :rtype: float

    :raises UnknownCentralityError: If the centrality is not recognized

    Example:
        >>> point_estimate(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), "mean")
        3.0
    """
    centrality = validate_centrality(centrality)
    if centrality == "median":
        return float(np.median(values))
    elif centrality == "mean":
        return float(np.mean(values))
    return map_estimate(values)


def credible_interval(
    values: npt.NDArray,
    ci: custom_types.Float = DEFAULT_CI,
    method: str = DEFAULT_CI_METHOD,
) -> tuple[float, float]:
    """Compute a two-sided credible interval of a sample.

    :param values: Finite sample values
    :type values: npt.NDArray
    :param ci: Probability mass of the interval, in (0, 1]. (Default: 0.95)
    :type ci: custom_types.Float
    :param method: "ETI" for the equal-tailed interval, "HDI" for the highest
        density interval (computed with `arviz.hdi`). (Default: "ETI")
    :type method: str

    :returns: Tuple of (lower, upper) bounds
    :rtype: tuple[float, float]

    :raises InvalidIntervalMassError: If `ci` is outside (0, 1]
    :raises UnknownIntervalMethodError: If the method is not recognized
    """
    ci = validate_ci(ci)
    method = validate_ci_method(method)

    # A single value is its own interval
    if values.size == 1:
        return float(values[0]), float(values[0])

    if method == "ETI":
        lower, upper = np.quantile(values, [(1 - ci) / 2, (1 + ci) / 2])
    else:
        lower, upper = az.hdi(values, hdi_prob=ci)
    return float(lower), float(upper)


def order_parameters(parameters: Iterable) -> list[str]:
    """Display order of parameters: the reverse of their first appearance.

    Categorical axes draw the first level at the bottom, so reversing the order
    of appearance puts the first parameter of a table at the top of a plot.

    Example:
        >>> order_parameters(["a", "a", "b", "c", "b"])
        ['c', 'b', 'a']
    """
    return list(dict.fromkeys(map(str, parameters)))[::-1]


def apply_parameter_order(plot_df: pd.DataFrame, levels: list[str]) -> pd.DataFrame:
    """Convert the "Parameter" column to an ordered categorical with `levels`."""
    return plot_df.assign(
        Parameter=pd.Categorical(
            plot_df["Parameter"].astype(str), categories=levels, ordered=True
        )
    )


def _summarize_groups(
    plot_df: pd.DataFrame,
    schema: SampleSchema,
    centrality: str,
    ci: float,
    ci_method: str,
) -> pd.DataFrame:
    """Point estimate and credible interval for every group of a sample table."""
    split_columns = list(schema.grouping_columns)
    summary_columns = ["Parameter", "x", "CI_low", "CI_high"]
    summary_columns.extend(split_columns[1:])
    if schema.has_group:
        summary_columns.append("Group")

    rows = []
    for keys, bucket in plot_df.groupby(
        split_columns, sort=False, dropna=False, observed=True
    ):

        # Skip groups without any usable values
        values = bucket["x"].to_numpy(dtype=float)
        values = values[np.isfinite(values)]
        if values.size == 0:
            continue

        # Calculate the summary statistics
        estimate = point_estimate(values, centrality)
        ci_low, ci_high = credible_interval(values, ci, ci_method)
        if not ci_low <= estimate <= ci_high:
            warnings.warn(
                f"The {centrality} of '{bucket['Parameter'].iloc[0]}' ({estimate:.4g}) "
                f"lies outside of its {ci:.0%} {ci_method} ({ci_low:.4g}, {ci_high:.4g})."
            )

        # Record the group labels alongside the statistics
        row = dict(zip(split_columns, keys if isinstance(keys, tuple) else (keys,)))
        row.update({"x": estimate, "CI_low": ci_low, "CI_high": ci_high})
        if schema.has_group:
            row["Group"] = bucket["Group"].iloc[0]
        rows.append(row)

    return pd.DataFrame(rows, columns=summary_columns)


def summarize_density(
    plot_df: pd.DataFrame,
    model: Optional[Union[az.InferenceData, pd.DataFrame]] = None,
    centrality: str = DEFAULT_CENTRALITY,
    ci: custom_types.Float = DEFAULT_CI,
    ci_method: str = DEFAULT_CI_METHOD,
    on_unmatched: str = "raise",
) -> DensityPlotData:
    """Reshape a sample table and summarize every parameter for plotting.

    :param plot_df: Long-format table with a numeric "x" column and optionally
        "Parameter", "y", "Effects" and "Component" columns. Typically the
        output of `bayesviz.density.estimate_density`.
    :type plot_df: pd.DataFrame
    :param model: Optional model reference used to classify parameters into
        effects and components. See `bayesviz.parameters.classify_parameters`.
        (Default: None)
    :type model: Optional[Union[az.InferenceData, pd.DataFrame]]
    :param centrality: Point estimate: "median", "mean" or "MAP".
        (Default: "median")
    :type centrality: str
    :param ci: Probability mass of the credible intervals, in (0, 1].
        (Default: 0.95)
    :type ci: custom_types.Float
    :param ci_method: "ETI" or "HDI". (Default: "ETI")
    :type ci_method: str
    :param on_unmatched: Handling of parameters missing from the model
        classification: "raise" or "drop". (Default: "raise")
    :type on_unmatched: str

    :returns: The reshaped table bundled with its summary and labels
    :rtype: DensityPlotData

    :raises EmptyInputError: If the table has no rows, or none are left after
        dropping unclassified parameters
    :raises UnknownCentralityError: If the centrality is not recognized
    :raises InvalidIntervalMassError: If `ci` is outside (0, 1]
    :raises UnknownIntervalMethodError: If `ci_method` is not recognized
    :raises ReshapeError: If the table has no "x" column or classification fails

    Processing steps:
        1. Tables without a "Parameter" column are labeled "Distribution"
        2. Effects/Component classifications are joined from `model`
        3. Grouped names (``group[element]``) get "Group" and "Label" columns
           unless the table already has a "Group" column, and classification
           codes become facet titles
        4. Rows are grouped by "Parameter", "Effects" and "Component" (those
           present); each non-empty group gets one summary row
        5. Both tables get the same display order of parameters

    Example:
        >>> plot_data = summarize_density(estimate_density(idata), model=idata)
        >>> plot_data.summary.columns.tolist()
        ['Parameter', 'x', 'CI_low', 'CI_high', 'Effects', 'Component']
    """
    # Check the options
    centrality = validate_centrality(centrality)
    ci = validate_ci(ci)
    ci_method = validate_ci_method(ci_method)

    # Check the table
    if len(plot_df) == 0:
        raise EmptyInputError("Cannot summarize an empty sample table.")
    if "x" not in plot_df.columns:
        raise ReshapeError("Sample table must have an 'x' column.")

    # Name unnamed distributions
    if "Parameter" not in plot_df.columns:
        plot_df = plot_df.assign(Parameter=DISTRIBUTION_LABEL)
    else:
        plot_df = plot_df.assign(Parameter=plot_df["Parameter"].astype(str))

    # Add effects and component columns
    if model is not None:
        plot_df = merge_classification(plot_df, model, on_unmatched=on_unmatched)
        if len(plot_df) == 0:
            raise EmptyInputError("No rows left after classifying parameters.")

    # Normalize names used for faceting. Groups given by the caller are kept.
    if "Group" not in plot_df.columns:
        plot_df = split_facet_names(plot_df)
    plot_df = fix_facet_names(plot_df)
    schema = SampleSchema.from_frame(plot_df)

    # Summarize, then order both tables identically
    summary = _summarize_groups(plot_df, schema, centrality, ci, ci_method)
    levels = order_parameters(plot_df["Parameter"])
    plot_df = apply_parameter_order(plot_df, levels)
    summary = (
        apply_parameter_order(summary, levels)
        .sort_values("Parameter", kind="stable")
        .reset_index(drop=True)
    )

    return DensityPlotData(
        samples=plot_df, summary=summary, metadata=PlotInfo(), schema=schema
    )
