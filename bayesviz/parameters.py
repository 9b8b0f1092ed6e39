# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Parameter classification and labeling for density plots.

Posterior samples from regression models carry parameter names that encode
structure: whether a coefficient is a fixed or a random effect, which model
component (conditional, zero-inflated, dispersion, ...) it belongs to, and
whether it is an element of a grouped or vector-valued parameter. This module
recovers that structure so that plots can be faceted by it, and turns raw
parameter names into display labels.

Naming conventions follow those of brms and bambi models:
    - ``r_``, ``sd_`` and ``cor_`` prefixes, or a ``|`` in the name, mark
      random effects
    - ``zi`` prefixes/suffixes mark the zero-inflated component, ``phi`` and
      ``disp`` the dispersion component, ``sigma`` the sigma component and
      ``simo_`` monotonic-effect simplexes
    - ``group[element]`` names are elements of a grouped parameter
"""

from __future__ import annotations

import re
import warnings

from typing import Iterable, Union

import arviz as az
import pandas as pd

from bayesviz.defaults import FACET_LABELS
from bayesviz.density import extract_samples
from bayesviz.exceptions import ReshapeError

# Random effects
_RANDOM_EFFECT = re.compile(r"^(r_|sd_|cor_)|\|")

# Components, checked in order. The first match wins.
_COMPONENTS = (
    ("zero_inflated", re.compile(r"^(b_)?zi_|__zi|_zi($|\[)")),
    ("dispersion", re.compile(r"^(b_)?(phi|disp)($|_|\[)|_disp$")),
    ("sigma", re.compile(r"^(b_)?sigma($|_|\[)")),
    ("simplex", re.compile(r"^simo_")),
)

# Elements of grouped parameters, e.g. "beta[1]" or "r_subject[3,Intercept]"
_GROUPED_NAME = re.compile(r"^(?P<Group>[^\[\]]+)\[(?P<Label>[^\[\]]+)\]$")

# Intercepts under the common naming conventions
_INTERCEPT = re.compile(r"^(b_)?(zi_)?\(?intercept\)?$", flags=re.IGNORECASE)

# Rewrites turning raw parameter names into display labels, applied in order
_LABEL_REWRITES = (
    (re.compile(r"^(b|bs|bsp|bcs)_(.+)$"), r"\2"),
    (re.compile(r"^r_(.+)\[(.+),(.+)\]$"), r"\3 (\1: \2)"),
    (re.compile(r"^sd_(.+)__(.+)$"), r"SD \2 (\1)"),
    (re.compile(r"^cor_(.+)__(.+)__(.+)$"), r"Cor \2 ~ \3 (\1)"),
    (re.compile(r"^zi_(.+)$"), r"\1 (Zero-Inflated)"),
    (re.compile(r"^(.+)_zi$"), r"\1 (Zero-Inflated)"),
    (re.compile(r"^(.+)_disp$"), r"\1 (Dispersion)"),
    (re.compile(r"^(.+)\.(\d+)$"), r"\1 \2"),
    (re.compile(r"\(Intercept\)"), "Intercept"),
)


def classify_parameter(name: str) -> tuple[str, str]:
    """Classify a single parameter name.

    :param name: Raw parameter name
    :type name: str

    :returns: Tuple of (effects, component), where effects is "fixed" or
        "random" and component is one of "conditional", "zero_inflated",
        "dispersion", "sigma" or "simplex"
    :rtype: tuple[str, str]

    Example:
        >>> classify_parameter("b_zi_Intercept")
        ('fixed', 'zero_inflated')
        >>> classify_parameter("1|subject")
        ('random', 'conditional')
    """
    effects = "random" if _RANDOM_EFFECT.search(name) else "fixed"
    for component, pattern in _COMPONENTS:
        if pattern.search(name):
            return effects, component
    return effects, "conditional"


def classify_parameters(
    model: Union[az.InferenceData, pd.DataFrame], group: str = "posterior"
) -> pd.DataFrame:
    """Build a classification table for every parameter of a model.

    :param model: Either an InferenceData object, whose flattened parameter
        names are classified with `classify_parameter`, or a ready-made
        classification table with a "Parameter" column and at least one of
        "Effects" and "Component".
    :type model: Union[az.InferenceData, pd.DataFrame]
    :param group: InferenceData group holding the parameters.
        (Default: "posterior")
    :type group: str

    :returns: Table with one row per parameter and columns "Parameter" plus the
        available classification columns
    :rtype: pd.DataFrame

    :raises ReshapeError: If a classification table lacks the required columns
    """
    # Classify the names from the inference data
    if isinstance(model, az.InferenceData):
        names = list(extract_samples(model, group=group))
        if not names:
            raise ReshapeError(f"No parameters found in group '{group}'.")
        effects, components = zip(*(classify_parameter(name) for name in names))
        return pd.DataFrame(
            {"Parameter": names, "Effects": effects, "Component": components}
        )

    # Otherwise validate the provided table
    if "Parameter" not in model.columns:
        raise ReshapeError("Classification table must have a 'Parameter' column.")
    columns = ["Parameter"] + [
        col for col in ("Effects", "Component") if col in model.columns
    ]
    if len(columns) == 1:
        raise ReshapeError(
            "Classification table must have an 'Effects' or 'Component' column."
        )
    classification = model[columns].drop_duplicates(subset="Parameter")
    return classification.assign(Parameter=classification["Parameter"].astype(str))


def merge_classification(
    plot_df: pd.DataFrame,
    model: Union[az.InferenceData, pd.DataFrame],
    on_unmatched: str = "raise",
) -> pd.DataFrame:
    """Join effects and component classifications onto a sample table.

    :param plot_df: Sample table with a "Parameter" column
    :type plot_df: pd.DataFrame
    :param model: Model reference passed to `classify_parameters`
    :type model: Union[az.InferenceData, pd.DataFrame]
    :param on_unmatched: What to do with rows whose parameter has no
        classification. "raise" raises a `ReshapeError`; "drop" removes the rows
        and issues a warning. (Default: "raise")
    :type on_unmatched: str

    :returns: Sample table with classification columns, in the original row
        order
    :rtype: pd.DataFrame

    :raises ReshapeError: If `on_unmatched` is invalid, or if it is "raise" and
        unmatched parameters exist
    """
    if on_unmatched not in ("raise", "drop"):
        raise ReshapeError(
            f"`on_unmatched` must be 'raise' or 'drop'. Got '{on_unmatched}'."
        )

    # Classification columns replace any existing ones
    classification = classify_parameters(model)
    plot_df = plot_df.drop(
        columns=[col for col in classification.columns[1:] if col in plot_df.columns]
    )
    merged = plot_df.assign(Parameter=plot_df["Parameter"].astype(str)).merge(
        classification, on="Parameter", how="left", indicator=True
    )

    # Handle parameters without a classification
    unmatched = merged["_merge"] == "left_only"
    if unmatched.any():
        missing = merged.loc[unmatched, "Parameter"].unique().tolist()
        if on_unmatched == "raise":
            raise ReshapeError(f"Parameters without a classification: {missing}")
        warnings.warn(
            f"Dropping {unmatched.sum()} rows of parameters without a "
            f"classification: {missing}"
        )
        merged = merged.loc[~unmatched]

    return merged.drop(columns="_merge").reset_index(drop=True)


def split_facet_names(plot_df: pd.DataFrame) -> pd.DataFrame:
    """Split grouped parameter names into a group label and an element label.

    Names of the form ``group[element]`` get "Group" = ``group`` and
    "Label" = ``element``. Other names use the full name for both. The columns
    are only added when at least one grouped name exists. "Parameter" is left
    untouched so that distinct parameters with the same element label remain
    distinct.
    """
    names = plot_df["Parameter"].astype(str)
    parts = names.str.extract(_GROUPED_NAME)
    if parts["Group"].isna().all():
        return plot_df

    return plot_df.assign(
        Group=parts["Group"].fillna(names).to_numpy(),
        Label=parts["Label"].fillna(names).to_numpy(),
    )


def fix_facet_names(plot_df: pd.DataFrame) -> pd.DataFrame:
    """Rewrite effects and component codes as facet titles.

    Categorical columns have their categories renamed, other columns have their
    values replaced. Unknown codes and missing values are left as they are.
    """
    replacements = {}
    for col, labels in FACET_LABELS.items():
        if col not in plot_df.columns:
            continue
        column = plot_df[col]
        if isinstance(column.dtype, pd.CategoricalDtype):
            replacements[col] = column.cat.rename_categories(
                lambda code, labels=labels: labels.get(code, code)
            )
        else:
            replacements[col] = column.replace(labels)
    return plot_df.assign(**replacements)


def clean_parameter_names(params: Iterable[str], grid: bool = False) -> dict[str, str]:
    """Map raw parameter names to display labels.

    :param params: Raw parameter names. Duplicates are ignored.
    :type params: Iterable[str]
    :param grid: Whether the labels are shown in a faceted grid, in which case
        the group part of ``group[element]`` names is dropped since the facet
        already identifies it. (Default: False)
    :type grid: bool

    :returns: Mapping from raw name to display label, in first-appearance order
    :rtype: dict[str, str]

    Example:
        >>> clean_parameter_names(["b_Intercept", "b_zi_x", "r_subject[3,Intercept]"])
        {'b_Intercept': 'Intercept', 'b_zi_x': 'x (Zero-Inflated)',
         'r_subject[3,Intercept]': 'Intercept (subject: 3)'}
    """
    labels = {}
    for param in map(str, params):
        if param in labels:
            continue
        label = param
        if grid and (match := _GROUPED_NAME.match(label)):
            label = match.group("Label")
        for pattern, replacement in _LABEL_REWRITES:
            label = pattern.sub(replacement, label)
        labels[param] = label
    return labels


def is_intercept(name: str) -> bool:
    """Whether a parameter name denotes a model intercept."""
    return _INTERCEPT.match(name) is not None


def remove_intercept(plot_df: pd.DataFrame, show_intercept: bool = False) -> pd.DataFrame:
    """Drop rows of intercept parameters unless they should be shown.

    Unused categories are removed from a categorical "Parameter" column so
    that downstream grouping does not produce empty groups.
    """
    if show_intercept:
        return plot_df

    mask = plot_df["Parameter"].astype(str).map(is_intercept).to_numpy(dtype=bool)
    plot_df = plot_df.loc[~mask]
    if isinstance(plot_df["Parameter"].dtype, pd.CategoricalDtype):
        plot_df = plot_df.assign(
            Parameter=plot_df["Parameter"].cat.remove_unused_categories()
        )
    return plot_df
