import numpy as np
import pandas as pd
import pytest

from quasiSurvival import (
    ContractViolationError,
    SchemaError,
    average_by_group,
    hazard_frame_from_matrix,
    overlay_empirical,
    summarize_ages_by_group,
    summarize_hazard,
    survival_from_hazard,
)


def test_hazard_frame_from_matrix_feeds_summarize_hazard():
    hazard = np.array([[0.1, 0.2, 0.3], [0.05, 0.05, 0.05]])
    covariates = pd.DataFrame({"group": ["x", "y"]}, index=[10, 11])
    d = hazard_frame_from_matrix(hazard, ids=["p1", "p2"], covariates=covariates)

    assert list(d.columns) == ["id", "timeIndex", "hazard", "group"]
    assert d["id"].tolist() == ["p1"] * 3 + ["p2"] * 3
    assert d["timeIndex"].tolist() == [1, 2, 3, 1, 2, 3]
    assert d["group"].tolist() == ["x"] * 3 + ["y"] * 3

    res = summarize_hazard(d, "id", "timeIndex", "hazard")
    np.testing.assert_allclose(res.details["survival"], survival_from_hazard(hazard).ravel())


def test_hazard_frame_from_matrix_validates_shapes():
    with pytest.raises(ContractViolationError):
        hazard_frame_from_matrix(np.zeros(3))
    with pytest.raises(ContractViolationError):
        hazard_frame_from_matrix(np.zeros((2, 3)), ids=[1])


def test_average_by_group_and_overlay():
    d = pd.DataFrame(
        {
            "id": [1, 1, 2, 2, 3, 3],
            "age": [1, 2, 1, 2, 1, 2],
            "group": ["a", "a", "a", "a", "b", "b"],
            "hazard": [0.5, 0.5, 0.0, 0.0, 0.5, 1.0],
        }
    )
    details = summarize_hazard(d, "id", "age", "hazard").details
    avg = average_by_group(details, "group", "age")

    assert avg[["group", "age"]].values.tolist() == [["a", 1], ["a", 2], ["b", 1], ["b", 2]]
    np.testing.assert_allclose(avg["survival"], [0.75, 0.625, 0.5, 0.0])

    observed = pd.DataFrame({"group": ["a", "a", "b"], "age": [1, 2, 1]})
    empirical = summarize_ages_by_group(observed, "group", "age")
    overlaid = overlay_empirical(avg, empirical, "group", "age")

    assert list(overlaid.columns) == ["group", "age", "survival", "empirical_survival"]
    np.testing.assert_allclose(overlaid["empirical_survival"], [0.5, 0.0, 0.0, 0.0])


def test_overlay_leaves_missing_points_as_nan():
    modeled = pd.DataFrame({"group": ["a", "a"], "age": [1, 5], "survival": [0.9, 0.4]})
    empirical = pd.DataFrame({"group": ["a"], "age": [1], "survival": [0.8]})
    overlaid = overlay_empirical(modeled, empirical, "group", "age")
    assert overlaid["empirical_survival"].iloc[0] == 0.8
    assert np.isnan(overlaid["empirical_survival"].iloc[1])


def test_reporting_schema_errors():
    frame = pd.DataFrame({"group": ["a"], "age": [1]})
    with pytest.raises(SchemaError):
        average_by_group(frame, "group", "age")
    with pytest.raises(SchemaError):
        overlay_empirical(frame, frame, "group", "age")
