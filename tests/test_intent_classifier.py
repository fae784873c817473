import numpy as np
import pandas as pd
import pytest

from citysim import (
    InsufficientCities,
    IntentThresholdManager,
    SessionIntentClassifier,
    SimilarityMatrix,
    UnknownCity,
)


@pytest.fixture
def handmade_similarity():
    cities = ["A", "B", "C", "D"]
    pairs = {("A", "B"): 0.9, ("A", "C"): 0.1, ("A", "D"): 0.5, ("B", "C"): 0.3, ("B", "D"): 0.7, ("C", "D"): 0.2}
    values = np.eye(4)
    for (a, b), score in pairs.items():
        i, j = cities.index(a), cities.index(b)
        values[i, j] = values[j, i] = score
    return SimilarityMatrix(values, cities)


@pytest.fixture
def handmade_table():
    return pd.DataFrame({
        "session_id": ["s1", "s2", "s3", "s4", "s5"],
        "distinct_cities": [["A", "B"], ["A", "C"], ["B", "D"], ["A", "B", "C"], ["D"]],
    })


def test_scenario_scores(scenario_similarity, scenario_table):
    classifier = SessionIntentClassifier(scenario_similarity, cutoff=0.5, verbosity=0)

    intent = classifier.classify(scenario_table)

    assert list(intent["session_id"]) == ["S1", "S2"]
    assert intent["intent_score"].tolist() == pytest.approx([1.0, 1.0])
    assert (intent["intent_label"] == "High Intent").all()


def test_score_is_mean_over_all_pairs(handmade_similarity):
    classifier = SessionIntentClassifier(handmade_similarity, verbosity=0)

    assert classifier.score_session(["A", "B"]) == pytest.approx(0.9)
    assert classifier.score_session(["A", "B", "C"]) == pytest.approx((0.9 + 0.1 + 0.3) / 3)
    assert classifier.score_session(["A", "B", "C", "D"]) == pytest.approx((0.9 + 0.1 + 0.5 + 0.3 + 0.7 + 0.2) / 6)


def test_score_ignores_order_and_repeats(handmade_similarity):
    classifier = SessionIntentClassifier(handmade_similarity, verbosity=0)

    assert classifier.score_session(["C", "A", "B"]) == classifier.score_session(["B", "C", "A", "A"])


def test_single_city_session_has_no_score(handmade_similarity):
    classifier = SessionIntentClassifier(handmade_similarity, verbosity=0)

    with pytest.raises(InsufficientCities):
        classifier.score_session(["A", "A"])
    with pytest.raises(InsufficientCities):
        classifier.score_session([])


def test_unknown_city_in_session(handmade_similarity):
    with pytest.raises(UnknownCity):
        SessionIntentClassifier(handmade_similarity, verbosity=0).score_session(["A", "Atlantis"])


def test_cutoff_is_derived_from_score_distribution(handmade_similarity, handmade_table):
    classifier = SessionIntentClassifier(handmade_similarity, low_intent_quantile=0.25, verbosity=0)

    intent = classifier.classify(handmade_table)

    scores = pd.Series([0.9, 0.1, 0.7, (0.9 + 0.1 + 0.3) / 3])
    assert classifier.cutoff == pytest.approx(scores.quantile(0.25))
    labels = intent.set_index("session_id")["intent_label"].to_dict()
    assert labels == {"s1": "High Intent", "s2": "Low Intent", "s3": "High Intent", "s4": "High Intent"}


def test_score_equal_to_cutoff_is_low_intent(handmade_similarity, handmade_table):
    classifier = SessionIntentClassifier(handmade_similarity, low_intent_quantile=0.0, verbosity=0)

    intent = classifier.classify(handmade_table).set_index("session_id")

    assert classifier.cutoff == pytest.approx(0.1)
    assert intent.loc["s2", "intent_label"] == "Low Intent"
    assert (intent.drop("s2")["intent_label"] == "High Intent").all()


def test_cutoff_follows_the_current_population(handmade_similarity, handmade_table):
    classifier = SessionIntentClassifier(handmade_similarity, low_intent_quantile=0.5, verbosity=0)

    classifier.classify(handmade_table)
    full_cutoff = classifier.cutoff
    classifier.classify(handmade_table[handmade_table["session_id"].isin(["s1", "s3"])])

    assert classifier.cutoff == pytest.approx(0.8)
    assert classifier.cutoff != pytest.approx(full_cutoff)


def test_single_city_sessions_never_labeled(handmade_similarity, handmade_table):
    intent = SessionIntentClassifier(handmade_similarity, verbosity=0).classify(handmade_table)

    assert "s5" not in set(intent["session_id"])
    assert set(intent["intent_label"]) <= {"High Intent", "Low Intent"}


def test_only_single_city_sessions(handmade_similarity):
    table = pd.DataFrame({"session_id": ["x", "y"], "distinct_cities": [["A"], ["B"]]})
    classifier = SessionIntentClassifier(handmade_similarity, verbosity=0)

    intent = classifier.classify(table)

    assert intent.empty
    assert classifier.cutoff is None
    assert "intent_label" in intent.columns


def test_empty_table(scenario_similarity, table_builder):
    classifier = SessionIntentClassifier(scenario_similarity, verbosity=0)

    intent = classifier.classify(table_builder.build([]))

    assert intent.empty
    assert classifier.label_distribution(intent).empty


def test_label_distribution(handmade_similarity, handmade_table):
    classifier = SessionIntentClassifier(handmade_similarity, verbosity=0)
    intent = classifier.classify(handmade_table)

    distribution = classifier.label_distribution(intent).set_index("intent_label")

    assert distribution.loc["High Intent", "Count"] == 3
    assert distribution.loc["Low Intent", "Count"] == 1
    assert distribution["Percentage"].sum() == pytest.approx(100.0)


def test_custom_labels(handmade_similarity, handmade_table):
    classifier = SessionIntentClassifier(
        handmade_similarity, labels={"high": "planner", "low": "dreamer"}, verbosity=0
    )

    intent = classifier.classify(handmade_table)

    assert set(intent["intent_label"]) == {"planner", "dreamer"}


def test_falls_back_to_raw_city_column(handmade_similarity):
    table = pd.DataFrame({"session_id": ["r1"], "cities": [["A", "B", "A"]]})

    scored = SessionIntentClassifier(handmade_similarity, verbosity=0).score_sessions(table)

    assert scored.loc[0, "num_cities"] == 2
    assert scored.loc[0, "intent_score"] == pytest.approx(0.9)


def test_quantile_table():
    manager = IntentThresholdManager(pd.Series([0.0, 0.5, 1.0]), report_quantiles=[0.0, 0.5, 1.0])

    table = manager.quantile_table()

    assert table["intent_score"].tolist() == [0.0, 0.5, 1.0]
    assert table["quantile"].tolist() == [0.0, 0.5, 1.0]


def test_threshold_manager_export():
    manager = IntentThresholdManager(pd.Series([0.2, 0.4]), low_intent_quantile=0.5)
    manager.compute_cutoff()

    row = manager.to_dataframe().iloc[0]

    assert row["threshold"] == "INTENT_CUTOFF"
    assert row["value"] == pytest.approx(0.3)
    assert row["num_sessions"] == 2


def test_threshold_manager_rejects_bad_quantile():
    with pytest.raises(ValueError):
        IntentThresholdManager(pd.Series([0.1]), low_intent_quantile=1.5)
