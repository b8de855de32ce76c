import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from utils.config import Config, ConfigLoader, DEFAULT_CONFIG_PATH, YamlConfigLoader
from utils.settings import binding, segmentation, viewer


def test_default_config_file_loads() -> None:
    Config.load(DEFAULT_CONFIG_PATH, force_reload=True)
    assert Config.get("binding.stream") == "color"
    assert Config.get("binding.missing", "fallback") == "fallback"
    seg = Config.dataclass("segmentation", segmentation)
    assert seg.polyline_color == (0, 0, 255)
    assert seg.open_iterations == 2


def test_yaml_overrides_dataclass_defaults(tmp_path) -> None:
    cfg_file = tmp_path / "app.yaml"
    cfg_file.write_text(
        "logging:\n  level: DEBUG\n  log_dir: "
        + str(tmp_path / "logs")
        + "\nviewer:\n  headless: true\n  bogus: 1\n"
        + "binding:\n  format: z16\n  stream: depth\n"
    )
    Config.load(cfg_file, force_reload=True)
    v = Config.dataclass("viewer", viewer)
    assert v.headless is True
    assert v.window_name == viewer.window_name
    b = Config.dataclass("binding", binding)
    assert (b.stream, b.format) == ("depth", "z16")
    assert Config.section("absent") == {}


class DictLoader(ConfigLoader):
    def __init__(self, data):
        self.data = data

    def load(self, filename: str):
        return self.data


def test_loader_strategy_can_be_swapped() -> None:
    Config.set_loader(DictLoader({"binding": {"stream_index": 3}}))
    try:
        Config.load("unused.yaml")
        assert Config.get("binding.stream_index") == 3
    finally:
        Config.set_loader(YamlConfigLoader())
        Config.load(DEFAULT_CONFIG_PATH, force_reload=True)
