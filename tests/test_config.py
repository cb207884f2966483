import pytest
from pydantic import ValidationError

from pce.config import Settings


def test_defaults_expose_named_model_constants():
    config = Settings(_env_file=None)

    assert config.path_slack == 2
    assert config.admission_floor == 0.01
    assert config.worker_count >= 1
    assert config.batch_size >= 1


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PCE_BATCH_SIZE", "5")
    monkeypatch.setenv("PCE_WORKER_COUNT", "3")
    monkeypatch.setenv("PCE_SOLVER_BACKEND", " cbc ")

    config = Settings(_env_file=None)

    assert config.batch_size == 5
    assert config.worker_count == 3
    assert config.solver_backend == "CBC"


@pytest.mark.parametrize(
    "field, value",
    [
        ("worker_count", 0),
        ("batch_size", 0),
        ("path_slack", -1),
        ("admission_floor", 0.0),
        ("admission_floor", 1.5),
        ("collect_poll_seconds", 0),
    ],
)
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_settings_are_immutable():
    config = Settings(_env_file=None)

    with pytest.raises(ValidationError):
        config.batch_size = 10
