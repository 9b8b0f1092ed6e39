# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Density plots of posterior distributions.

This module renders the tables prepared by :py:mod:`bayesviz.summary` as
HoloViews objects. Two layouts are supported:

    - Stacked: one density line per parameter on a shared axis
    - Ridges: one filled density ridge per parameter along a categorical axis,
      overlaid with the credible interval and point estimate of each parameter
      and, optionally, with the prior density of each parameter

Plots are faceted by effects and model component when the parameters span more
than one of them, giving one panel per combination in a multi-column layout
with independent axes.
"""

from __future__ import annotations

import warnings

from typing import Any, Optional, Union

import arviz as az
import holoviews as hv
import hvplot.pandas  # pylint: disable=unused-import
import numpy as np
import pandas as pd

from bayesviz import custom_types
from bayesviz.defaults import (
    DEFAULT_CENTRALITY,
    DEFAULT_CI,
    DEFAULT_CI_METHOD,
    DEFAULT_HEIGHT,
    DEFAULT_LINE_WIDTH,
    DEFAULT_POINT_SIZE,
    DEFAULT_POSTERIOR_COLOR,
    DEFAULT_POSTERIORS_ALPHA,
    DEFAULT_PRIOR_COLOR,
    DEFAULT_PRIORS_ALPHA,
    DEFAULT_RIDGE_COLOR,
    DEFAULT_RIDGE_HEIGHT,
    DEFAULT_WIDTH,
    DISTRIBUTION_LABEL,
    GROUPING_COLUMNS,
)
from bayesviz.density import (
    estimate_density,
    estimate_grouped_density,
    samples_to_frame,
)
from bayesviz.exceptions import (
    DensityEstimationError,
    EmptyInputError,
    ReshapeError,
)
from bayesviz.parameters import (
    clean_parameter_names,
    remove_intercept,
    split_facet_names,
)
from bayesviz.summary import (
    DensityPlotData,
    apply_parameter_order,
    order_parameters,
    summarize_density,
)

# Types
HVType = Union[hv.Overlay, hv.NdOverlay, hv.Layout, hv.Element]


def _set_defaults(
    kwargs: dict[str, Any] | None, default_values: tuple[tuple[str, Any], ...]
) -> dict[str, Any]:
    """Apply default values to kwargs dictionary without overwriting existing keys.

    Example:
        >>> defaults = (('line_width', 2), ('alpha', 0.5))
        >>> _set_defaults({'line_width': 1}, defaults)
        {'line_width': 1, 'alpha': 0.5}
    """
    kwargs = dict(kwargs or {})
    for k, v in default_values:
        if k not in kwargs:
            kwargs[k] = v
    return kwargs


def _rows_matching(df: pd.DataFrame, columns: list[str], key: tuple) -> pd.DataFrame:
    """Rows of `df` whose `columns` equal the values of `key`. NaN matches NaN."""
    mask = np.ones(len(df), dtype=bool)
    for col, value in zip(columns, key):
        if pd.isna(value):
            mask &= df[col].isna().to_numpy()
        else:
            mask &= (df[col] == value).to_numpy()
    return df.loc[mask]


def _compact_parameters(plot_df: pd.DataFrame) -> pd.DataFrame:
    """Drop categories of "Parameter" that have no rows."""
    return plot_df.assign(Parameter=plot_df["Parameter"].cat.remove_unused_categories())


def _density_ridges(
    plot_df: pd.DataFrame,
    positions: dict[str, int],
    scale: float,
    label: str,
    color: str,
    alpha: custom_types.Float,
) -> list[hv.Area]:
    """One filled ridge per parameter, with its baseline at the parameter position."""
    ridges = []
    for paramname, param_df in plot_df.groupby("Parameter", observed=True, sort=False):
        position = positions.get(str(paramname))
        if position is None:
            continue
        param_df = param_df.sort_values("x")
        baseline = np.full(len(param_df), position, dtype=float)
        ridges.append(
            hv.Area(
                (
                    param_df["x"].to_numpy(),
                    baseline,
                    baseline + param_df["y"].to_numpy() * scale,
                ),
                vdims=["lower", "upper"],
                label=label,
            ).opts(fill_color=color, fill_alpha=alpha, line_alpha=0)
        )
    return ridges


def _stacked_lines(
    plot_df: pd.DataFrame,
    labels: dict[str, str],
    size_line: custom_types.Float,
) -> HVType:
    """One density line per parameter on a shared axis."""
    # Display labels are only used for the legend if they stay unique
    if len(set(labels.values())) == len(labels):
        plot_df = plot_df.assign(
            Parameter=plot_df["Parameter"].cat.rename_categories(
                [labels[str(cat)] for cat in plot_df["Parameter"].cat.categories]
            )
        )
    return plot_df.hvplot.line(x="x", y="y", by="Parameter", line_width=size_line)


def _ridge_panel(
    plot_df: pd.DataFrame,
    summary: Optional[pd.DataFrame],
    prior_df: Optional[pd.DataFrame],
    *,
    priors_alpha: custom_types.Float,
    posteriors_alpha: custom_types.Float,
    size_line: custom_types.Float,
    size_point: custom_types.Float,
) -> hv.Overlay:
    """Density ridges with optional prior ridges and summary overlays."""
    positions = {
        str(paramname): i
        for i, paramname in enumerate(plot_df["Parameter"].cat.categories)
    }

    # All ridges of a panel share one scale so that heights stay comparable
    ymax = plot_df["y"].max()
    if prior_df is not None and len(prior_df) > 0:
        ymax = max(ymax, prior_df["y"].max())
    scale = DEFAULT_RIDGE_HEIGHT / ymax if ymax > 0 else 1.0

    # Build the ridges
    color = DEFAULT_RIDGE_COLOR if prior_df is None else DEFAULT_POSTERIOR_COLOR
    elements = []
    if prior_df is not None:
        elements.extend(
            _density_ridges(
                prior_df, positions, scale, "Prior", DEFAULT_PRIOR_COLOR, priors_alpha
            )
        )
    elements.extend(
        _density_ridges(
            plot_df, positions, scale, "Posterior", color, posteriors_alpha
        )
    )

    # Add credible intervals and point estimates
    if summary is not None and len(summary) > 0:
        ypos = (
            summary["Parameter"].astype(str).map(positions).to_numpy(dtype=float)
        )
        elements.append(
            hv.Segments(
                (
                    summary["CI_low"].to_numpy(),
                    ypos,
                    summary["CI_high"].to_numpy(),
                    ypos,
                )
            ).opts(color=color, line_width=size_line)
        )
        elements.append(
            hv.Scatter((summary["x"].to_numpy(), ypos)).opts(
                size=size_point,
                marker="circle",
                fill_color="white",
                line_color=color,
                line_width=size_line,
            )
        )

    return hv.Overlay(elements)


def _finish_panel(
    panel: HVType,
    plot_df: pd.DataFrame,
    labels: dict[str, str],
    *,
    stack: bool,
    show_legend: bool,
    title: str,
    xlabel: str,
    ylabel: str,
    width: custom_types.Integer,
    height: custom_types.Integer,
) -> HVType:
    """Apply axes, legend and size options to a single panel."""
    categories = [str(cat) for cat in plot_df["Parameter"].cat.categories]

    # A single parameter or stacked lines have no meaningful y ticks
    if stack or len(categories) == 1:
        axis_opts = {"yaxis": "bare"}
    else:
        axis_opts = {
            "yticks": [(i, labels.get(cat, cat)) for i, cat in enumerate(categories)]
        }

    return panel.opts(
        title=title,
        xlabel=xlabel,
        ylabel=ylabel,
        show_legend=show_legend,
        width=width,
        height=height,
        **axis_opts,
    )


def _facet_layout(panels: dict[str, HVType], n_columns: custom_types.Integer) -> hv.Layout:
    """Combine facet panels into a layout with independent axes."""
    return hv.Layout(list(panels.values())).cols(n_columns).opts(shared_axes=False)


def _prepare_plot_data(
    data,
    model: Optional[Union[az.InferenceData, pd.DataFrame]],
    centrality: str,
    ci: custom_types.Float,
    ci_method: str,
) -> DensityPlotData:
    """Turn plot input into summarized density data.

    Density tables are summarized as they are. Raw samples are summarized
    directly and their densities estimated, so that point estimates and
    intervals describe the samples rather than the density grid.
    """
    if isinstance(data, DensityPlotData):
        return data

    # Density tables
    if isinstance(data, pd.DataFrame) and {"x", "y"} <= set(data.columns):
        return summarize_density(
            data, model=model, centrality=centrality, ci=ci, ci_method=ci_method
        )

    # Long sample tables keep their grouping columns, other containers are
    # flattened
    if isinstance(data, pd.DataFrame) and {"Parameter", "x"} <= set(data.columns):
        columns = [col for col in GROUPING_COLUMNS if col in data.columns]
        samples_df = data[columns + ["x"]]
        density_df = estimate_grouped_density(samples_df, by=columns)
    else:
        samples_df = samples_to_frame(data)
        density_df = estimate_density(data)

    # Summarize the raw samples, draw the densities
    raw = summarize_density(
        samples_df,
        model=model,
        centrality=centrality,
        ci=ci,
        ci_method=ci_method,
    )
    density = summarize_density(
        density_df,
        model=model,
        centrality=centrality,
        ci=ci,
        ci_method=ci_method,
    )
    return DensityPlotData(
        samples=density.samples,
        summary=raw.summary,
        metadata=density.metadata,
        schema=density.schema,
    )


def _prior_densities(
    model: Optional[Union[az.InferenceData, pd.DataFrame]],
    parameters: list[str],
) -> Optional[pd.DataFrame]:
    """Prior density table for the plotted parameters, or None if unavailable."""
    if not isinstance(model, az.InferenceData) or "prior" not in model.groups():
        warnings.warn(
            "Priors were requested but the model has no 'prior' group. Priors "
            "will not be drawn."
        )
        return None

    try:
        prior_df = estimate_density(model, group="prior")
    except DensityEstimationError as error:
        warnings.warn(f"Could not estimate prior densities ({error}). Priors will not be drawn.")
        return None

    return prior_df.loc[prior_df["Parameter"].isin(parameters)]


def plot_estimate_density(
    data,
    *,
    model: Optional[Union[az.InferenceData, pd.DataFrame]] = None,
    stack: bool = True,
    show_intercept: bool = False,
    n_columns: Optional[custom_types.Integer] = 1,
    priors: bool = False,
    priors_alpha: custom_types.Float = DEFAULT_PRIORS_ALPHA,
    posteriors_alpha: custom_types.Float = DEFAULT_POSTERIORS_ALPHA,
    size_line: custom_types.Float = DEFAULT_LINE_WIDTH,
    size_point: custom_types.Float = DEFAULT_POINT_SIZE,
    centrality: str = DEFAULT_CENTRALITY,
    ci: custom_types.Float = DEFAULT_CI,
    ci_method: str = DEFAULT_CI_METHOD,
    width: custom_types.Integer = DEFAULT_WIDTH,
    height: custom_types.Integer = DEFAULT_HEIGHT,
) -> HVType:
    """Plot posterior densities as stacked lines or as ridges.

    :param data: Either summarized density data (`DensityPlotData`), a density
        table with "x" and "y" columns, or raw posterior samples in any
        container accepted by `bayesviz.density.extract_samples`. An
        InferenceData object is also used as `model` when none is given.
    :param model: Model reference used to classify parameters for faceting and
        to draw priors. (Default: None)
    :type model: Optional[Union[az.InferenceData, pd.DataFrame]]
    :param stack: If True, densities are drawn as lines on a shared axis.
        Otherwise each parameter gets its own ridge with its credible interval
        and point estimate. (Default: True)
    :type stack: bool
    :param show_intercept: Whether to keep intercept parameters. (Default: False)
    :type show_intercept: bool
    :param n_columns: Number of columns of the facet layout. None disables
        faceting. (Default: 1)
    :type n_columns: Optional[custom_types.Integer]
    :param priors: Whether to draw prior ridges behind the posterior ridges.
        Requires an InferenceData model with a "prior" group; ridge plots only.
        (Default: False)
    :type priors: bool
    :param priors_alpha: Fill transparency of prior ridges. (Default: 0.4)
    :type priors_alpha: custom_types.Float
    :param posteriors_alpha: Fill transparency of posterior ridges. (Default: 0.7)
    :type posteriors_alpha: custom_types.Float
    :param size_line: Width of lines and interval segments. (Default: 2.0)
    :type size_line: custom_types.Float
    :param size_point: Size of point estimate markers. (Default: 8.0)
    :type size_point: custom_types.Float
    :param centrality: Point estimate used when `data` must be summarized.
        (Default: "median")
    :type centrality: str
    :param ci: Credible interval mass used when `data` must be summarized.
        (Default: 0.95)
    :type ci: custom_types.Float
    :param ci_method: Credible interval method used when `data` must be
        summarized. (Default: "ETI")
    :type ci_method: str
    :param width: Width of each panel in pixels. (Default: 600)
    :type width: custom_types.Integer
    :param height: Height of each panel in pixels. (Default: 400)
    :type height: custom_types.Integer

    :returns: The plot. Faceted plots are returned as an `hv.Layout`.
    :rtype: HVType

    :raises ReshapeError: If the density data has no "y" column
    :raises EmptyInputError: If nothing is left to plot after removing
        intercepts

    Layout Logic:
        - Faceting happens when `n_columns` is set and "Effects" or "Component"
          has more than one level; panels cover every present combination
        - Y ticks show parameter labels for ridge plots of several parameters
        - A single parameter gets neither legend nor y ticks

    Example:
        >>> plot_estimate_density(idata, stack=False, priors=True)
    """
    if model is None and isinstance(data, az.InferenceData):
        model = data
    plot_data = _prepare_plot_data(data, model, centrality, ci, ci_method)
    if not plot_data.schema.has_density:
        raise ReshapeError("Density plots need a 'y' column with density values.")

    # Facets are only needed if effects or components differ
    samples = plot_data.samples
    facet_columns = list(plot_data.schema.facet_columns)
    if not any(samples[col].nunique(dropna=False) > 1 for col in facet_columns):
        n_columns = None
    if n_columns is None:
        facet_columns = []

    # Get labels
    labels = clean_parameter_names(
        samples["Parameter"].cat.categories, grid=bool(facet_columns)
    )

    # Remove intercepts, if requested
    samples = _compact_parameters(
        remove_intercept(samples, show_intercept=show_intercept)
    )
    if len(samples) == 0:
        raise EmptyInputError(
            "No parameters left to plot after removing intercepts. Set "
            "`show_intercept=True` to plot them."
        )
    summary = remove_intercept(plot_data.summary, show_intercept=show_intercept)
    single = samples["Parameter"].nunique() == 1

    # Prior densities are only drawn on ridges
    prior_df = None
    if priors and not stack:
        prior_df = _prior_densities(
            model, [str(cat) for cat in samples["Parameter"].cat.categories]
        )

    # Split into facets
    if facet_columns:
        facets = {
            key if isinstance(key, tuple) else (key,): facet_df
            for key, facet_df in samples.groupby(
                facet_columns, sort=False, observed=True, dropna=False
            )
        }
    else:
        facets = {(): samples}

    panels = {}
    for key, facet_df in facets.items():
        facet_df = _compact_parameters(facet_df)
        if stack:
            panel = _stacked_lines(facet_df, labels, size_line)
        else:
            facet_params = [str(cat) for cat in facet_df["Parameter"].cat.categories]
            panel = _ridge_panel(
                facet_df,
                _rows_matching(summary, facet_columns, key),
                (
                    None
                    if prior_df is None
                    else prior_df.loc[prior_df["Parameter"].isin(facet_params)]
                ),
                priors_alpha=priors_alpha,
                posteriors_alpha=posteriors_alpha,
                size_line=size_line,
                size_point=size_point,
            )
        panels[" ".join(map(str, key))] = _finish_panel(
            panel,
            facet_df,
            labels,
            stack=stack,
            show_legend=(prior_df is not None) if not stack else not single,
            title=" ".join(map(str, key)) or plot_data.metadata.title,
            xlabel=plot_data.metadata.xlab,
            ylabel=plot_data.metadata.ylab,
            width=width,
            height=height,
        )

    if facet_columns:
        return _facet_layout(panels, n_columns)
    return panels[""]


def plot_estimate_density_df(
    plot_df: pd.DataFrame,
    *,
    stack: bool = True,
    n_columns: custom_types.Integer = 1,
    size_line: custom_types.Float = DEFAULT_LINE_WIDTH,
    line_kwargs: Optional[dict[str, Any]] = None,
    width: custom_types.Integer = DEFAULT_WIDTH,
    height: custom_types.Integer = DEFAULT_HEIGHT,
) -> HVType:
    """Plot a table of pre-computed densities.

    Unlike `plot_estimate_density`, no summary statistics are computed or drawn.
    Parameters are displayed in reverse order of first appearance. Tables with
    grouped parameter names (``group[element]``) or a "Group" column are
    faceted by group.

    :param plot_df: Table with columns "x", "y" and optionally "Parameter" and
        "Group"
    :type plot_df: pd.DataFrame
    :param stack: Lines on a shared axis if True, ridges otherwise.
        (Default: True)
    :type stack: bool
    :param n_columns: Number of columns of the facet layout. (Default: 1)
    :type n_columns: custom_types.Integer
    :param size_line: Width of density lines. (Default: 2.0)
    :type size_line: custom_types.Float
    :param line_kwargs: Extra styling options for ridges or lines, applied on
        top of the defaults. See `hv.opts.Area` and `hv.opts.Curve`.
    :type line_kwargs: Optional[dict[str, Any]]
    :param width: Width of each panel in pixels. (Default: 600)
    :type width: custom_types.Integer
    :param height: Height of each panel in pixels. (Default: 400)
    :type height: custom_types.Integer

    :returns: The plot, or an `hv.Layout` of one panel per group
    :rtype: HVType

    :raises EmptyInputError: If the table has no rows
    :raises ReshapeError: If "x" or "y" is missing
    """
    if len(plot_df) == 0:
        raise EmptyInputError("Cannot plot an empty density table.")
    if not {"x", "y"} <= set(plot_df.columns):
        raise ReshapeError("Density table must have 'x' and 'y' columns.")
    if "Parameter" not in plot_df.columns:
        plot_df = plot_df.assign(Parameter=DISTRIBUTION_LABEL)

    # Order the parameters and find groups
    plot_df = apply_parameter_order(
        plot_df, order_parameters(plot_df["Parameter"])
    )
    if "Group" not in plot_df.columns:
        plot_df = split_facet_names(plot_df)
    if "Label" in plot_df.columns:
        labels = dict(
            zip(plot_df["Parameter"].astype(str), plot_df["Label"].astype(str))
        )
    else:
        labels = {str(cat): str(cat) for cat in plot_df["Parameter"].cat.categories}
    single = plot_df["Parameter"].nunique() == 1

    if "Group" in plot_df.columns:
        facets = dict(iter(plot_df.groupby("Group", sort=False, dropna=False)))
    else:
        facets = {"": plot_df}

    panels = {}
    for key, facet_df in facets.items():
        facet_df = _compact_parameters(facet_df)
        if stack:
            panel = _stacked_lines(facet_df, labels, size_line).opts(
                hv.opts.Curve(**_set_defaults(line_kwargs, ()))
            )
        else:
            positions = {
                str(cat): i for i, cat in enumerate(facet_df["Parameter"].cat.categories)
            }
            ymax = facet_df["y"].max()
            panel = hv.Overlay(
                _density_ridges(
                    facet_df,
                    positions,
                    DEFAULT_RIDGE_HEIGHT / ymax if ymax > 0 else 1.0,
                    "Density",
                    DEFAULT_RIDGE_COLOR,
                    DEFAULT_POSTERIORS_ALPHA,
                )
            ).opts(
                hv.opts.Area(
                    **_set_defaults(
                        line_kwargs,
                        (
                            ("line_alpha", 1.0),
                            ("line_color", "black"),
                            ("line_width", size_line),
                        ),
                    )
                )
            )
        panels[str(key)] = _finish_panel(
            panel,
            facet_df,
            labels,
            stack=stack,
            show_legend=stack and not single,
            title=str(key),
            xlabel="x",
            ylabel="y",
            width=width,
            height=height,
        )

    if "Group" in plot_df.columns:
        return _facet_layout(panels, n_columns)
    return panels[""]
