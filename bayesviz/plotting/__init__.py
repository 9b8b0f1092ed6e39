# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Plotting utilities for bayesviz.

This subpackage renders posterior density estimates and their summaries as
interactive HoloViews objects. Users will typically call these functions
directly or through `bayesviz.summary.DensityPlotData.plot`.

Key Functionality:

    - Stacked density lines for comparing parameters on a shared axis
    - Ridge plots with credible intervals and point estimates
    - Prior/posterior comparison ridges
    - Faceting by fixed/random effects and model component
"""

from .plotting import plot_estimate_density, plot_estimate_density_df
