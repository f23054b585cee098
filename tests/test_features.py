"""Tests for symptom_trends.features -- positional join, hit_vac, lags."""

from __future__ import annotations

import logging

import pandas as pd
import pytest

from symptom_trends.errors import SchemaError
from symptom_trends.features import (
    build_features,
    check_common_epoch,
    hit_vac,
    lagged_view,
    reindex_search_weeks,
)
from symptom_trends.records import MERGED_COLUMNS, merged_records, search_records


def _weekly(location, weeks, vaccination=0.0, avg_positive=0.1):
    weeks = list(weeks)
    vac = vaccination if isinstance(vaccination, list) else [vaccination] * len(weeks)
    return pd.DataFrame({
        "location": [location] * len(weeks),
        "week": weeks,
        "avg_positive": [avg_positive] * len(weeks),
        "vaccination": vac,
    })


def _search(hits, geo="GB", start="2020-12-01"):
    return pd.DataFrame({
        "date": pd.date_range(start, periods=len(hits), freq="7D"),
        "hits": pd.array(hits, dtype="Int64"),
        "geo": geo,
    })


class TestHitVac:

    def test_formula(self):
        assert hit_vac(40, 50) == 3000

    def test_joined_row(self):
        merged = build_features(_weekly("United Kingdom", [1], vaccination=40.0), _search([50]), "United Kingdom")
        assert merged["hit_vac"].iloc[0] == 3000.0


class TestJoin:

    def test_search_weeks_are_positional(self):
        s = reindex_search_weeks(_search([7, 8, 9]))
        assert s["week"].tolist() == [1, 2, 3]
        assert s["hits"].tolist() == [7, 8, 9]

    def test_inner_join_overlap(self):
        weekly = _weekly("United Kingdom", range(3, 16))
        search = _search(list(range(10)))
        merged = build_features(weekly, search, "United Kingdom")
        assert merged["week"].tolist() == list(range(3, 11))
        assert len(merged) == 8
        assert list(merged.columns) == MERGED_COLUMNS
        # week 3 is the third search row
        assert merged["hits"].iloc[0] == 2

    def test_only_target_location(self):
        weekly = pd.concat([_weekly("United Kingdom", range(1, 4)), _weekly("France", range(1, 4))])
        merged = build_features(weekly, _search([1, 2, 3]), "United Kingdom")
        assert set(merged["location"]) == {"United Kingdom"}
        assert len(merged) == 3

    def test_no_common_weeks_is_empty(self):
        merged = build_features(_weekly("United Kingdom", range(20, 25)), _search([1, 2, 3]), "United Kingdom")
        assert merged.empty
        assert list(merged.columns) == MERGED_COLUMNS

    def test_unknown_location_is_empty(self):
        merged = build_features(_weekly("France", range(1, 4)), _search([1, 2, 3]), "Spain")
        assert merged.empty

    def test_search_for_other_region_is_empty(self, caplog):
        weekly = _weekly("France", range(1, 6))
        uk_search = _search([10, 20, 30, 40, 50], geo="GB")
        with caplog.at_level(logging.WARNING, logger="symptom_trends.features"):
            merged = build_features(weekly, uk_search, "France", geo="FR")
        assert merged.empty
        assert list(merged.columns) == MERGED_COLUMNS
        assert "does not cover France" in caplog.text

    def test_matching_region_joins(self):
        merged = build_features(_weekly("France", range(1, 6)), _search([1, 2, 3, 4, 5], geo="FR"), "France", geo="fr")
        assert len(merged) == 5

    def test_missing_weekly_column_raises(self):
        weekly = _weekly("France", range(1, 3)).drop(columns=["vaccination"])
        with pytest.raises(SchemaError):
            build_features(weekly, _search([1, 2]), "France")

    def test_inputs_not_mutated(self):
        weekly = _weekly("France", range(1, 4))
        search = _search([1, 2, 3])
        w0, s0 = weekly.copy(), search.copy()
        build_features(weekly, search, "France")
        pd.testing.assert_frame_equal(weekly, w0)
        pd.testing.assert_frame_equal(search, s0)


class TestLags:

    def _merged(self):
        # vaccination 90 -> hit_vac = 10 * hits
        return build_features(_weekly("France", [1, 2, 3], vaccination=90.0), _search([1, 2, 3]), "France")

    def test_lag_values(self):
        merged = self._merged()
        assert merged["hit_vac"].tolist() == [10.0, 20.0, 30.0]
        lagged = lagged_view(merged)
        assert lagged["week"].tolist() == [2, 3]
        assert lagged["hit_vac_lag"].tolist() == [10.0, 20.0]
        assert lagged["hits_lag"].tolist() == [1, 2]
        assert lagged["vac_lag"].tolist() == [90.0, 90.0]

    def test_first_row_has_no_lag(self):
        first = self._merged().iloc[0]
        assert pd.isna(first["hit_vac_lag"])
        assert pd.isna(first["hits_lag"])
        assert pd.isna(first["vac_lag"])

    def test_lag_from_joined_series(self):
        weekly = _weekly("France", range(3, 8), vaccination=50.0)
        merged = build_features(weekly, _search([1, 2, 3, 4, 5, 6]), "France")
        lagged = lagged_view(merged)
        # week 3 is the first joined week, even though search week 2 exists
        assert lagged["week"].tolist() == [4, 5, 6]
        assert lagged["hits_lag"].tolist() == [3, 4, 5]

    def test_gap_in_weeks_has_no_lag(self):
        weekly = _weekly("France", [1, 2, 4], vaccination=[0.0, 10.0, 20.0])
        merged = build_features(weekly, _search([5, 5, 5, 5]), "France")
        assert merged["week"].tolist() == [1, 2, 4]
        assert pd.isna(merged["hit_vac_lag"].iloc[2])
        assert lagged_view(merged)["week"].tolist() == [2]

    def test_empty_lagged_view(self):
        assert lagged_view(build_features(_weekly("France", [9]), _search([1]), "France")).empty

    def test_missing_hit_stays_missing(self):
        search = _search([1, None, 3])
        merged = build_features(_weekly("France", [1, 2, 3], vaccination=90.0), search, "France")
        assert pd.isna(merged["hit_vac"].iloc[1])
        recs = merged_records(merged)
        assert recs[1].hits is None
        assert recs[1].hit_vac is None
        assert recs[2].hits_lag is None
        assert recs[2].hit_vac_lag is None
        assert recs[2].hit_vac == 30.0

    def test_value_objects(self):
        recs = merged_records(self._merged())
        assert not recs[0].has_lag
        assert recs[0].hits_lag is None
        assert recs[2].has_lag
        assert recs[2].hits_lag == 2
        assert recs[2].hit_vac_lag == 20.0


class TestCommonEpoch:

    def test_aligned_start(self):
        assert check_common_epoch(pd.Timestamp("2020-12-01"), _search([1, 2], start="2020-12-01"))

    def test_misaligned_start_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="symptom_trends.features"):
            ok = check_common_epoch(pd.Timestamp("2020-12-01"), _search([1, 2], start="2020-12-15"))
        assert not ok
        assert "will not line up" in caplog.text

    def test_empty_search(self):
        assert check_common_epoch(pd.Timestamp("2020-12-01"), _search([]))


class TestSearchRecords:

    def test_value_objects(self):
        recs = search_records(_search([4, None], geo="FR"))
        assert recs[0].date == pd.Timestamp("2020-12-01").date()
        assert recs[0].hits == 4
        assert recs[0].geo == "FR"
        assert recs[1].hits is None
        assert recs[1].date == pd.Timestamp("2020-12-08").date()

    def test_empty(self):
        assert search_records(_search([])) == []
