import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from citysim import (  # noqa: E402
    CitySessionMatrixBuilder,
    SessionTableBuilder,
    SimilarityEngine,
)


@pytest.fixture
def scenario_records():
    """S1 and S2 search A and B together, S3 only C."""
    return [
        {"session_id": "S1", "cities": ["A", "B"]},
        {"session_id": "S2", "cities": ["A", "B"]},
        {"session_id": "S3", "cities": ["C"]},
    ]


@pytest.fixture
def nested_records():
    """Records in the raw dump layout: user attributes nested under ``user``."""
    def record(session_id, timestamp, cities, user_id, joining_date, country):
        return {
            "session_id": session_id,
            "unix_timestamp": [timestamp],
            "cities": [cities],
            "user": [[{"user_id": user_id, "joining_date": joining_date, "country": country}]],
        }

    return [
        record("X061RFWB06K9V", 1442503708, "New York NY, Newark NJ", 2024, "2015-03-22", "UK"),
        record("5AZ2X2A9BHH5U", 1441353991, "New York NY, Jersey City NJ, Philadelphia PA", 2853, "2015-03-28", "DE"),
        record("SHTB4IYAX4PX6", 1440843490, "San Antonio TX", 10958, "2015-03-06", "UK"),
        record("JBRB8MZGTX3M4", 1441243070, "Washington DC, Baltimore MD", 7693, "2015-03-12", ""),
        record("YJCMPURC2FL9C", 1440910217, "San Francisco CA, Oakland CA, San Jose CA", 1203, "2015-02-28", "US"),
        record("ZDV1LUNTSZTD4", 1441001234, "New York NY, Newark NJ, New York NY", 2024, "2015-03-22", "UK"),
        record("PQ4TJJJ6H9XCT", 1441100000, "Oakland CA, San Francisco CA", 5531, "2015-03-01", "US"),
        record("KQ7HP0F4CNB4J", 1441200000, "Philadelphia PA, Baltimore MD", 8812, "2015-03-15", None),
    ]


@pytest.fixture
def table_builder():
    return SessionTableBuilder(verbosity=0)


@pytest.fixture
def scenario_table(table_builder, scenario_records):
    return table_builder.build(scenario_records)


@pytest.fixture
def scenario_matrix(scenario_table):
    return CitySessionMatrixBuilder(verbosity=0).build(scenario_table)


@pytest.fixture
def scenario_similarity(scenario_matrix):
    return SimilarityEngine(scenario_matrix, verbosity=0).build_matrix()


@pytest.fixture
def nested_table(table_builder, nested_records):
    return table_builder.build(nested_records)


@pytest.fixture
def nested_matrix(nested_table):
    return CitySessionMatrixBuilder(verbosity=0).build(nested_table)
