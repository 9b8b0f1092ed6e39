# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
bayesviz: Plotting helpers for posterior density estimates.

bayesviz turns posterior samples and density estimates into HoloViews chart
objects. It reshapes tabular statistical results, computes summary overlays
(point estimates and credible intervals) and assembles layered line, ridge and
faceted plots from them.

Key Features:
    - Kernel density estimation of posterior samples, including ArviZ
      InferenceData objects
    - Per-parameter point estimates and credible intervals
    - Classification of parameters into fixed/random effects and model
      components for faceting
    - Stacked density and ridge plots with interval overlays

Global Variables:
    __version__: Package version string

Example:
    >>> import bayesviz as bv
    >>> densities = bv.estimate_density({"a": a_draws, "b": b_draws})
    >>> plot_data = bv.summarize_density(densities, centrality="mean")
    >>> plot_data.plot(stack=False)
"""

from typeguard import install_import_hook

# Define the version
__version__ = "0.1.0"

# Set up type checking
install_import_hook("bayesviz")

# Import objects that should be easily accessible from the package level
# pylint: disable=wrong-import-position
from bayesviz.density import estimate_density, extract_samples
from bayesviz.exceptions import BayesVizError
from bayesviz.plotting import plot_estimate_density, plot_estimate_density_df
from bayesviz.summary import DensityPlotData, PlotInfo, summarize_density
