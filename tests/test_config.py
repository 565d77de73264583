from pathlib import Path

import pytest

from life import LOG_PATH, LifeConfig
from life_display import build_parser


def test_defaults():
    config = LifeConfig()
    assert (config.width, config.height, config.steps_per_epoch) == (100, 100, 1500)
    assert config.reseed
    assert config.max_waves is None
    assert config.log_path == LOG_PATH


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0},
        {"height": -1},
        {"steps_per_epoch": 0},
        {"max_waves": 0},
        {"delay_ms": -5},
        {"steps_per_epoch": 2.5},
        {"steps_per_epoch": True},
        {"max_waves": 1.5},
        {"width": 10.0},
    ],
)
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        LifeConfig(**kwargs)


def test_log_path_coerced():
    assert LifeConfig(log_path="stats.csv").log_path == Path("stats.csv")


def test_from_args():
    args = build_parser().parse_args(
        ["--width", "40", "--height", "30", "--steps", "12", "--seed", "3",
         "--waves", "2", "--no-reseed", "--delay", "5", "--no-log"]
    )
    config = LifeConfig.from_args(args)
    assert (config.width, config.height, config.steps_per_epoch) == (40, 30, 12)
    assert config.seed == 3
    assert config.max_waves == 2
    assert not config.reseed
    assert config.delay_ms == 5
    assert config.log_path is None


def test_from_args_defaults():
    config = LifeConfig.from_args(build_parser().parse_args([]))
    assert config == LifeConfig()
