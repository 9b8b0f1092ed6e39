"""Tests for the density summarizer."""

import warnings

import numpy as np
import pandas as pd
import pytest

from numpy.testing import assert_allclose

from bayesviz.density import estimate_density
from bayesviz.exceptions import (
    BayesVizError,
    EmptyInputError,
    InvalidIntervalMassError,
    ReshapeError,
    UnknownCentralityError,
    UnknownIntervalMethodError,
)
from bayesviz.summary import (
    DensityPlotData,
    PlotInfo,
    SampleSchema,
    credible_interval,
    order_parameters,
    point_estimate,
    summarize_density,
)


def _sorted_summary(summary):
    """Summary rows in a canonical order for comparisons."""
    return (
        summary.assign(Parameter=summary["Parameter"].astype(str))
        .sort_values("Parameter")
        .reset_index(drop=True)
    )


class TestStatistics:
    """Tests for point estimates and credible intervals."""

    def test_mean_of_one_to_five(self):
        """The mean of 1..5 is 3 and is bracketed by its interval."""
        values = np.arange(1.0, 6.0)
        assert point_estimate(values, "mean") == 3.0
        lower, upper = credible_interval(values, 0.95)
        assert lower <= 3.0 <= upper

    def test_median(self):
        """The median of an even sample is the midpoint."""
        assert point_estimate(np.array([1.0, 2.0, 3.0, 10.0])) == 2.5

    def test_map_is_deterministic(self, rng):
        """MAP estimates do not change between calls."""
        values = rng.normal(2, 1, 500)
        first = point_estimate(values, "MAP")
        assert point_estimate(values, "map") == first
        assert point_estimate(values, "mode") == first
        assert abs(first - 2) < 0.5

    def test_map_of_constant_sample(self):
        """Constant samples have themselves as their mode."""
        assert point_estimate(np.array([4.0, 4.0]), "MAP") == 4.0

    def test_unknown_centrality(self):
        """Unknown centralities are rejected."""
        with pytest.raises(UnknownCentralityError):
            point_estimate(np.arange(3.0), "bogus")

    def test_full_mass_interval_is_range(self):
        """A credible mass of one spans the whole sample."""
        assert credible_interval(np.array([2.0, 0.0, 7.0]), 1.0) == (0.0, 7.0)

    def test_equal_tailed_interval(self):
        """ETI bounds are the tail quantiles."""
        values = np.arange(101.0)
        assert_allclose(credible_interval(values, 0.9), (5.0, 95.0))

    def test_hdi_is_narrower_for_skewed_samples(self, rng):
        """The HDI of a skewed sample is no wider than its ETI."""
        values = rng.exponential(1.0, 2000)
        eti = credible_interval(values, 0.9, "ETI")
        hdi = credible_interval(values, 0.9, "hdi")
        assert hdi[1] - hdi[0] <= eti[1] - eti[0]

    @pytest.mark.parametrize("ci", [0.0, -0.5, 1.5, float("nan")])
    def test_invalid_mass(self, ci):
        """Masses outside of (0, 1] are rejected."""
        with pytest.raises(InvalidIntervalMassError):
            credible_interval(np.arange(3.0), ci)

    def test_unknown_method(self):
        """Only ETI and HDI are supported."""
        with pytest.raises(UnknownIntervalMethodError):
            credible_interval(np.arange(3.0), 0.9, "BCI")


class TestOrdering:
    """Tests for the display order of parameters."""

    def test_reverse_first_appearance(self):
        """Display order reverses the order of first appearance."""
        assert order_parameters(["a", "a", "b", "c", "b"]) == ["c", "b", "a"]

    def test_both_tables_share_levels(self, two_parameter_samples):
        """Samples and summary use identical ordered categories."""
        plot_data = summarize_density(two_parameter_samples)
        sample_levels = list(plot_data.samples["Parameter"].cat.categories)
        summary_levels = list(plot_data.summary["Parameter"].cat.categories)
        assert sample_levels == summary_levels == ["b", "a"]
        assert plot_data.samples["Parameter"].cat.ordered
        assert plot_data.summary["Parameter"].astype(str).tolist() == ["b", "a"]


class TestSummarizeDensity:
    """Tests for summarize_density."""

    def test_returns_structured_data(self, two_parameter_samples):
        """The result bundles tables, labels and schema."""
        plot_data = summarize_density(two_parameter_samples)
        assert isinstance(plot_data, DensityPlotData)
        assert plot_data.metadata == PlotInfo()
        assert plot_data.metadata.to_dict()["title"] == "Estimated Density Function"
        assert plot_data.schema == SampleSchema()
        assert list(plot_data.summary.columns) == ["Parameter", "x", "CI_low", "CI_high"]

    def test_one_row_per_parameter(self, two_parameter_samples):
        """Two parameters with 100 samples give exactly two summary rows."""
        summary = summarize_density(two_parameter_samples).summary
        assert len(summary) == 2
        assert set(summary["Parameter"].astype(str)) == {"a", "b"}

    def test_single_parameter_mean(self):
        """Values 1..5 summarized by their mean."""
        df = pd.DataFrame({"Parameter": "theta", "x": [1.0, 2.0, 3.0, 4.0, 5.0]})
        row = summarize_density(df, centrality="mean", ci=0.95).summary.iloc[0]
        assert row["x"] == 3.0
        assert row["CI_low"] <= 3.0 <= row["CI_high"]

    def test_missing_parameter_column(self):
        """Unnamed tables describe a single 'Distribution'."""
        plot_data = summarize_density(pd.DataFrame({"x": [1.0, 2.0, 3.0]}))
        assert plot_data.samples["Parameter"].astype(str).unique().tolist() == [
            "Distribution"
        ]
        assert plot_data.summary["Parameter"].astype(str).tolist() == ["Distribution"]

    def test_interval_brackets_estimate(self, two_parameter_samples):
        """Median estimates always lie within their equal-tailed interval."""
        summary = summarize_density(two_parameter_samples, ci=0.5).summary
        assert (summary["CI_low"] <= summary["x"]).all()
        assert (summary["x"] <= summary["CI_high"]).all()

    def test_row_order_does_not_matter(self, two_parameter_samples):
        """Reversing the input rows leaves the summary unchanged."""
        forward = summarize_density(two_parameter_samples, centrality="mean").summary
        backward = summarize_density(
            two_parameter_samples.iloc[::-1].reset_index(drop=True), centrality="mean"
        ).summary
        forward, backward = _sorted_summary(forward), _sorted_summary(backward)
        assert forward["Parameter"].tolist() == backward["Parameter"].tolist()
        assert_allclose(
            forward[["x", "CI_low", "CI_high"]].to_numpy(),
            backward[["x", "CI_low", "CI_high"]].to_numpy(),
        )

    def test_density_table(self, rng):
        """Density tables are summarized on their grid values."""
        density = estimate_density({"a": rng.normal(size=100)}, precision=101)
        plot_data = summarize_density(density)
        assert plot_data.schema.has_density
        row = plot_data.summary.iloc[0]
        assert_allclose(row["x"], density["x"].median())

    def test_grouping_columns(self):
        """Rows follow the present combinations of the grouping columns."""
        df = pd.DataFrame(
            {
                "Parameter": ["a"] * 4 + ["b"] * 4,
                "Effects": ["fixed", "fixed", "random", "random"] * 2,
                "x": np.arange(8.0),
            }
        )
        plot_data = summarize_density(df)
        assert plot_data.schema.grouping_columns == ("Parameter", "Effects")
        assert len(plot_data.summary) == 4
        assert set(plot_data.summary["Effects"]) == {"Fixed Effects", "Random Effects"}

    def test_empty_groups_are_skipped(self):
        """Groups without finite values produce no summary row."""
        df = pd.DataFrame({"Parameter": ["a", "a", "c"], "x": [1.0, 2.0, np.nan]})
        summary = summarize_density(df).summary
        assert summary["Parameter"].astype(str).tolist() == ["a"]

    def test_grouped_names(self):
        """Grouped names add Group and Label columns to both tables."""
        df = pd.DataFrame(
            {"Parameter": ["beta[0]", "beta[0]", "beta[1]", "beta[1]"], "x": [0.0, 1.0, 2.0, 3.0]}
        )
        plot_data = summarize_density(df)
        assert plot_data.schema.has_group
        assert plot_data.samples["Label"].tolist() == ["0", "0", "1", "1"]
        assert set(plot_data.summary["Group"]) == {"beta"}
        assert len(plot_data.summary) == 2

    def test_classification_from_inference_data(self, inference_data):
        """Inference data supplies effects and components."""
        density = estimate_density(inference_data, precision=64)
        plot_data = summarize_density(density, model=inference_data)
        assert plot_data.schema.facet_columns == ("Effects", "Component")
        assert len(plot_data.summary) == 6
        random_rows = plot_data.summary.loc[
            plot_data.summary["Effects"] == "Random Effects", "Parameter"
        ]
        assert random_rows.astype(str).tolist() == ["1|subject"]

    def test_unmatched_classification(self, two_parameter_samples):
        """Unclassified parameters raise unless dropping is requested."""
        table = pd.DataFrame({"Parameter": ["a"], "Effects": ["fixed"]})
        with pytest.raises(ReshapeError):
            summarize_density(two_parameter_samples, model=table)
        with pytest.warns(UserWarning):
            plot_data = summarize_density(
                two_parameter_samples, model=table, on_unmatched="drop"
            )
        assert plot_data.summary["Parameter"].astype(str).tolist() == ["a"]

    def test_everything_dropped(self, two_parameter_samples):
        """Dropping every row leaves nothing to summarize."""
        table = pd.DataFrame({"Parameter": ["z"], "Effects": ["fixed"]})
        with pytest.warns(UserWarning), pytest.raises(EmptyInputError):
            summarize_density(two_parameter_samples, model=table, on_unmatched="drop")

    def test_estimate_outside_interval_warns(self):
        """Point estimates outside of their interval are reported."""
        df = pd.DataFrame({"x": [0.0] * 99 + [1000.0]})
        with pytest.warns(UserWarning, match="lies outside"):
            summarize_density(df, centrality="mean")

    def test_empty_table(self):
        """Empty tables cannot be summarized."""
        with pytest.raises(EmptyInputError):
            summarize_density(pd.DataFrame({"Parameter": [], "x": []}))

    def test_bogus_centrality(self, two_parameter_samples):
        """Unknown centralities are rejected before any work is done."""
        with pytest.raises(UnknownCentralityError):
            summarize_density(two_parameter_samples, centrality="bogus")

    def test_invalid_mass(self, two_parameter_samples):
        """Credible masses must be in (0, 1]."""
        with pytest.raises(InvalidIntervalMassError):
            summarize_density(two_parameter_samples, ci=1.5)

    def test_missing_x(self):
        """Tables need an x column."""
        with pytest.raises(ReshapeError):
            summarize_density(pd.DataFrame({"Parameter": ["a"], "value": [1.0]}))

    def test_errors_share_a_base_class(self):
        """All option errors are bayesviz errors and value errors."""
        for error in (
            UnknownCentralityError,
            InvalidIntervalMassError,
            UnknownIntervalMethodError,
        ):
            assert issubclass(error, BayesVizError)
            assert issubclass(error, ValueError)

    def test_caller_groups_are_kept(self):
        """A Group column given by the caller is not replaced."""
        df = pd.DataFrame(
            {
                "Parameter": ["beta[0]", "beta[0]", "beta[1]", "beta[1]"],
                "Group": ["slopes", "slopes", "other", "other"],
                "x": [0.0, 1.0, 2.0, 3.0],
            }
        )
        plot_data = summarize_density(df)
        assert plot_data.samples["Group"].tolist() == df["Group"].tolist()
        assert set(plot_data.summary["Group"]) == {"slopes", "other"}

    def test_highest_density_intervals(self, two_parameter_samples):
        """HDI summaries match the interval of each parameter's samples."""
        summary = summarize_density(two_parameter_samples, ci_method="hdi").summary
        for _, row in summary.iterrows():
            values = two_parameter_samples.loc[
                two_parameter_samples["Parameter"] == row["Parameter"], "x"
            ].to_numpy()
            assert_allclose(
                (row["CI_low"], row["CI_high"]), credible_interval(values, 0.95, "HDI")
            )
            assert row["CI_low"] <= row["x"] <= row["CI_high"]

    def test_categorical_grouping_columns(self):
        """Unused categories of grouping columns give no rows."""
        df = pd.DataFrame(
            {
                "Parameter": ["a", "a", "b", "b"],
                "Effects": pd.Categorical(
                    ["fixed", "fixed", "random", "random"],
                    categories=["fixed", "random", "unused"],
                ),
                "x": [0.0, 1.0, 2.0, 3.0],
            }
        )
        with warnings.catch_warnings():
            warnings.simplefilter("error", FutureWarning)
            summary = summarize_density(df).summary
        assert len(summary) == 2
