import numpy as np
import pytest

from patent_search.core.errors import DegenerateVector, DimensionMismatch, ModelError
from patent_search.core.vectors import as_vector, cosine_distance, cosine_distances


def test_identical_vectors_have_zero_distance():
    assert cosine_distance([0.3, 0.4], [0.3, 0.4]) == pytest.approx(0.0, abs=1e-12)


def test_orthogonal_vectors_have_unit_distance():
    assert cosine_distance([1.0, 0.0], [0.0, 2.0]) == pytest.approx(1.0)


def test_opposite_vectors_have_distance_two():
    assert cosine_distance([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(2.0)


def test_distance_is_scale_invariant():
    assert cosine_distance([1.0, 2.0, 3.0], [10.0, 20.0, 30.0]) == pytest.approx(0.0, abs=1e-12)


def test_distances_stay_within_bounds():
    rng = np.random.default_rng(7)
    query = rng.normal(size=16)
    matrix = rng.normal(size=(200, 16))

    distances = cosine_distances(query, matrix)

    assert distances.shape == (200,)
    assert np.all(distances >= 0.0)
    assert np.all(distances <= 2.0)


def test_zero_query_is_rejected():
    with pytest.raises(DegenerateVector):
        cosine_distance([0.0, 0.0], [1.0, 0.0])


def test_zero_stored_vector_is_rejected():
    with pytest.raises(DegenerateVector):
        cosine_distances(np.array([1.0, 0.0]), np.array([[1.0, 0.0], [0.0, 0.0]]))


def test_dimension_mismatch_is_hard_error():
    with pytest.raises(DimensionMismatch) as excinfo:
        as_vector([0.1, 0.2], expected_dim=3)
    assert excinfo.value.expected == 3
    assert excinfo.value.actual == 2


def test_dimension_mismatch_between_pair():
    with pytest.raises(DimensionMismatch) as excinfo:
        cosine_distance([1.0, 0.0, 0.0], [1.0, 0.0])
    # the stored vector sets the expected dimensionality
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 3


@pytest.mark.parametrize("values", [[], [float("nan"), 1.0], [float("inf")]])
def test_malformed_vectors_are_model_errors(values):
    with pytest.raises(ModelError):
        as_vector(values)
