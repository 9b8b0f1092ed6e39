# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Default configuration values for bayesviz components.

This module centralizes default values used across the package, including
summary statistic options, density estimation settings, plot labels and plot
styling.

The module is organized into logical groups covering:
    - Point estimate and credible interval defaults
    - Kernel density estimation defaults
    - Naming conventions for the sample and summary tables
    - Plot labels, sizes and colors

Default values cannot be programmatically altered. Every function that uses one
of them exposes a keyword argument to override it on a per-call basis.
"""

# Summary statistic defaults
DEFAULT_CENTRALITY: str = "median"
"""Default point estimate used to summarize each parameter.

:type: str
"""

DEFAULT_CI: float = 0.95
"""Default probability mass of credible intervals.

:type: float
"""

DEFAULT_CI_METHOD: str = "ETI"
"""Default credible interval method. "ETI" gives equal-tailed intervals, "HDI"
gives highest density intervals.

:type: str
"""

CENTRALITY_ALIASES: dict[str, str] = {
    "median": "median",
    "mean": "mean",
    "map": "MAP",
    "mode": "MAP",
}
"""Recognized (lowercased) centrality names and the canonical name each maps to.

:type: dict[str, str]
"""

# Density estimation defaults
DEFAULT_PRECISION: int = 2**10
"""Default number of grid points at which densities are evaluated.

:type: int
"""

DEFAULT_EXTEND_SCALE: float = 0.1
"""Default fraction of the sample range by which the density grid is extended
on each side when extension is requested.

:type: float
"""

DEFAULT_BANDWIDTH: str = "scott"
"""Default bandwidth rule passed to `scipy.stats.gaussian_kde`.

:type: str
"""

# Naming conventions
DISTRIBUTION_LABEL: str = "Distribution"
"""Parameter label assigned to sample tables that do not name their parameter.

:type: str
"""

GROUPING_COLUMNS: tuple[str, ...] = ("Parameter", "Effects", "Component")
"""Candidate grouping columns of the sample table, in order of precedence.

:type: tuple[str, ...]
"""

FACET_LABELS: dict[str, dict[str, str]] = {
    "Effects": {"fixed": "Fixed Effects", "random": "Random Effects"},
    "Component": {
        "conditional": "(Conditional)",
        "zero_inflated": "(Zero-Inflated)",
        "dispersion": "(Dispersion)",
        "sigma": "(Sigma)",
        "simplex": "(Monotonic Effects)",
    },
}
"""Facet titles used in place of the raw effects and component codes.

:type: dict[str, dict[str, str]]
"""

# Plot labels
DEFAULT_PLOT_INFO: dict[str, str] = {
    "xlab": "Values",
    "ylab": "Density",
    "legend_fill": "Parameter",
    "legend_color": "Parameter",
    "title": "Estimated Density Function",
}
"""Default axis, legend and title labels attached to summarized density data.

:type: dict[str, str]
"""

# Plot styling
DEFAULT_WIDTH: int = 600
"""Default plot width in pixels.

:type: int
"""

DEFAULT_HEIGHT: int = 400
"""Default plot height in pixels.

:type: int
"""

DEFAULT_LINE_WIDTH: float = 2.0
"""Default width of density lines and credible interval segments.

:type: float
"""

DEFAULT_POINT_SIZE: float = 8.0
"""Default size of point estimate markers.

:type: float
"""

DEFAULT_PRIORS_ALPHA: float = 0.4
"""Default fill transparency of prior ridges.

:type: float
"""

DEFAULT_POSTERIORS_ALPHA: float = 0.7
"""Default fill transparency of posterior ridges.

:type: float
"""

DEFAULT_RIDGE_HEIGHT: float = 0.9
"""Height, in units of the categorical axis, of the tallest ridge.

:type: float
"""

DEFAULT_POSTERIOR_COLOR: str = "#2c3e50"
"""Fill and overlay color of posterior ridges when priors are drawn.

:type: str
"""

DEFAULT_PRIOR_COLOR: str = "#f39c12"
"""Fill color of prior ridges.

:type: str
"""

DEFAULT_RIDGE_COLOR: str = "#7f8c8d"
"""Fill and overlay color of posterior ridges when no priors are drawn.

:type: str
"""
