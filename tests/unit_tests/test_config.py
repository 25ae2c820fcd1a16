import pytest

from exactzonal.config import DEFAULT_MAX_CELLS, load_config
from exactzonal.errors import BadInputError


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config()
    assert cfg.zonal.max_cells == DEFAULT_MAX_CELLS
    assert cfg.zonal.stats == ["count", "mean"]
    assert cfg.logging.level == "INFO"


def test_yaml_overrides(tmp_path):
    path = tmp_path / "exactzonal.yaml"
    path.write_text(
        "zonal:\n"
        "  stats: weighted_mean\n"
        "  max_cells: 1000\n"
        "  id_field: name\n"
        "logging:\n"
        "  format: json\n"
    )
    cfg = load_config(str(path))

    assert cfg.zonal.stats == ["weighted_mean"]
    assert cfg.zonal.max_cells == 1000
    assert cfg.zonal.id_field == "name"
    assert cfg.zonal.max_workers == 1
    assert cfg.logging.format == "json"


def test_default_location_is_picked_up(tmp_path, monkeypatch):
    (tmp_path / "exactzonal.yaml").write_text("zonal:\n  max_workers: 4\n")
    monkeypatch.chdir(tmp_path)
    assert load_config().zonal.max_workers == 4


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(str(path)).zonal.max_cells == DEFAULT_MAX_CELLS


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("zonal:\n  max_cell: 5\nlogging:\n  file: run.log\n")
    cfg = load_config(str(path))

    assert cfg.zonal.max_cells == DEFAULT_MAX_CELLS
    assert cfg.logging.file == "run.log"


def test_non_positive_limits_are_rejected(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("zonal:\n  max_workers: 0\n")
    with pytest.raises(BadInputError, match="max_workers"):
        load_config(str(path))
