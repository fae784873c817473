import itertools

import numpy as np
import pytest

from citysim import (
    CitySessionMatrixBuilder,
    DataFormatError,
    SimilarityEngine,
    SimilarityMatrix,
    UndefinedSimilarity,
    UnknownCity,
    build_similarity_matrix,
    cosine_similarity,
)


def test_scenario_similarities(scenario_matrix, scenario_similarity):
    engine = SimilarityEngine(scenario_matrix, verbosity=0)

    assert engine.similarity("A", "B") == pytest.approx(1.0)
    assert engine.similarity("A", "C") == 0.0
    assert engine.similarity("B", "C") == 0.0
    assert scenario_similarity.score("A", "B") == pytest.approx(1.0)
    assert scenario_similarity.score("A", "C") == 0.0


def test_self_similarity_is_exactly_one(nested_matrix):
    engine = SimilarityEngine(nested_matrix, verbosity=0)
    similarity = engine.build_matrix()

    assert np.all(np.diag(similarity.values) == 1.0)
    for city in nested_matrix.cities:
        assert engine.similarity(city, city) == 1.0


def test_matrix_is_exactly_symmetric_and_bounded(nested_matrix):
    values = build_similarity_matrix(nested_matrix, block_size=3).values

    assert np.array_equal(values, values.T)
    assert values.min() >= 0.0
    assert values.max() <= 1.0


def test_pairwise_matches_full_matrix(nested_matrix):
    engine = SimilarityEngine(nested_matrix, verbosity=0)
    similarity = engine.build_matrix()

    for city_a, city_b in itertools.combinations(nested_matrix.cities, 2):
        assert engine.similarity(city_a, city_b) == pytest.approx(similarity.score(city_a, city_b))
        assert engine.similarity(city_a, city_b) == engine.similarity(city_b, city_a)


def test_known_pair_value(nested_matrix):
    # New York NY = [1, 1, 0, 0, 0, 2, 0, 0], Newark NJ = [1, 0, 0, 0, 0, 1, 0, 0] in session order
    similarity = build_similarity_matrix(nested_matrix)

    assert similarity.score("New York NY", "Newark NJ") == pytest.approx(3 / (np.sqrt(6) * np.sqrt(2)))


def test_rebuild_is_byte_identical(nested_matrix):
    first = build_similarity_matrix(nested_matrix, block_size=4)
    second = build_similarity_matrix(nested_matrix, block_size=4)

    assert first.values.tobytes() == second.values.tobytes()
    assert first.cities == second.cities


def test_parallel_blocks_match_sequential(nested_matrix):
    sequential = build_similarity_matrix(nested_matrix, n_jobs=1, block_size=3)
    parallel = build_similarity_matrix(nested_matrix, n_jobs=2, block_size=3)

    assert sequential.values.tobytes() == parallel.values.tobytes()


def test_similarity_matrix_is_read_only(scenario_similarity):
    with pytest.raises(ValueError):
        scenario_similarity.values[0, 1] = 0.5


def test_engine_caches_matrix(scenario_matrix):
    engine = SimilarityEngine(scenario_matrix, verbosity=0)

    assert engine.build_matrix() is engine.similarity_matrix


def test_city_without_sessions_makes_matrix_undefined(scenario_table):
    city_matrix = CitySessionMatrixBuilder(verbosity=0).build(scenario_table, vocabulary=["A", "B", "C", "Z"])

    with pytest.raises(UndefinedSimilarity, match="Z"):
        build_similarity_matrix(city_matrix)


def test_pairwise_with_zero_vector(scenario_table):
    city_matrix = CitySessionMatrixBuilder(verbosity=0).build(scenario_table, vocabulary=["A", "B", "C", "Z"])
    engine = SimilarityEngine(city_matrix, verbosity=0)

    with pytest.raises(UndefinedSimilarity):
        engine.similarity("A", "Z")
    assert engine.similarity("Z", "Z") == 1.0


def test_empty_vocabulary_gives_empty_matrix(table_builder):
    city_matrix = CitySessionMatrixBuilder(verbosity=0).build(table_builder.build([]))
    similarity = SimilarityEngine(city_matrix, verbosity=0).build_matrix()

    assert len(similarity) == 0
    assert similarity.values.shape == (0, 0)


def test_unknown_city(scenario_matrix, scenario_similarity):
    with pytest.raises(UnknownCity):
        SimilarityEngine(scenario_matrix, verbosity=0).similarity("A", "Atlantis")
    with pytest.raises(UnknownCity):
        scenario_similarity.score("Atlantis", "A")


def test_invalid_block_size(scenario_matrix):
    with pytest.raises(ValueError):
        build_similarity_matrix(scenario_matrix, block_size=0)


def test_cosine_similarity_formula():
    assert cosine_similarity([1, 2, 0], [2, 4, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 3]) == 0.0
    assert cosine_similarity([1, 1], [1, 0]) == pytest.approx(1 / np.sqrt(2))


def test_cosine_similarity_zero_vector():
    with pytest.raises(UndefinedSimilarity):
        cosine_similarity([0, 0, 0], [1, 0, 0])


def test_cosine_similarity_length_mismatch():
    with pytest.raises(DataFormatError):
        cosine_similarity([1, 0], [1, 0, 0])


def test_similarity_matrix_shape_validation():
    with pytest.raises(DataFormatError):
        SimilarityMatrix(np.eye(2), ["A", "B", "C"])


def test_to_frame_labels(scenario_similarity):
    frame = scenario_similarity.to_frame()

    assert list(frame.index) == ["A", "B", "C"]
    assert list(frame.columns) == ["A", "B", "C"]
