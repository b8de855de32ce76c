import sys
from pathlib import Path

import cv2
import numpy as np
from omegaconf import OmegaConf

sys.path.append(str(Path(__file__).resolve().parents[1]))

from main import AppConfig, run
from utils.config import DEFAULT_CONFIG_PATH


def test_app_config_from_yaml() -> None:
    data = OmegaConf.to_container(OmegaConf.load(DEFAULT_CONFIG_PATH), resolve=True)
    cfg = AppConfig.from_dict(data)
    assert cfg.binding.stream == "color"
    assert cfg.segmentation.polyline_color == (0, 0, 255)
    assert cfg.bag is None and cfg.images == []
    assert cfg.segmentation.kernel_size == 1
    assert cfg.viewer.hotkeys is False


def test_run_with_image_replay(tmp_path) -> None:
    img = np.zeros((64, 64, 3), np.uint8)
    img[16:48, 16:48] = 255
    path = tmp_path / "square.png"
    cv2.imwrite(str(path), img)
    cfg = AppConfig.from_dict(
        {
            "viewer": {"headless": True, "max_ticks": 30, "tick_rate": 200.0},
            "replay": {"fps": 100.0},
            "source": {"images": [str(path)]},
            "logging": {"level": "INFO", "log_dir": str(tmp_path / "logs")},
        }
    )
    assert run(cfg) >= 1
