import os

import pytest

from citysim.utils import get_path, load_yaml, merge_config


def test_load_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("intent:\n  low_intent_quantile: 0.3\n")

    assert load_yaml(str(path)) == {"intent": {"low_intent_quantile": 0.3}}


def test_load_yaml_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml(str(tmp_path / "absent.yaml"))


@pytest.mark.parametrize("content", ["", "- a\n- b\n", "key: [unclosed\n"])
def test_load_yaml_rejects_unusable_content(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)

    with pytest.raises(ValueError):
        load_yaml(str(path))


def test_merge_config_is_recursive_and_pure():
    defaults = {"similarity": {"n_jobs": 1, "block_size": 512}, "recommender": {"top_k": 5}}
    overrides = {"similarity": {"n_jobs": -1}, "extra": True}

    merged = merge_config(defaults, overrides)

    assert merged == {"similarity": {"n_jobs": -1, "block_size": 512}, "recommender": {"top_k": 5}, "extra": True}
    assert defaults["similarity"]["n_jobs"] == 1


def test_merge_config_without_overrides():
    assert merge_config({"a": 1}, None) == {"a": 1}


def test_get_path_known_key():
    assert os.path.isdir(get_path("config"))


def test_get_path_unknown_key():
    with pytest.raises(ValueError, match="Unknown path type"):
        get_path("cache")
