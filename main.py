"""Texture viewer application configured through Hydra (``conf/app.yaml``)."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, cast

import hydra
from omegaconf import DictConfig, OmegaConf

from cli.texture_cli import make_source, run_viewer
from utils.error_tracker import ErrorTracker
from utils.logger import Logger
from utils.settings import (
    BindingCfg,
    ReplayCfg,
    SegmentationCfg,
    StreamCfg,
    ViewerCfg,
    paths,
)


def _build(cls, data: dict[str, Any] | None):
    known = {f.name for f in fields(cls)}
    kwargs = {
        k: tuple(v) if isinstance(v, list) else v
        for k, v in (data or {}).items()
        if k in known
    }
    return cls(**kwargs)


@dataclass
class AppConfig:
    stream: StreamCfg = field(default_factory=StreamCfg)
    binding: BindingCfg = field(default_factory=BindingCfg)
    segmentation: SegmentationCfg = field(default_factory=SegmentationCfg)
    viewer: ViewerCfg = field(default_factory=ViewerCfg)
    replay: ReplayCfg = field(default_factory=ReplayCfg)
    bag: str | None = None
    images: list[str] = field(default_factory=list)
    logging: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(cfg: dict[str, Any]) -> "AppConfig":
        source = cfg.get("source", {}) or {}
        return AppConfig(
            stream=_build(StreamCfg, cfg.get("stream")),
            binding=_build(BindingCfg, cfg.get("binding")),
            segmentation=_build(SegmentationCfg, cfg.get("segmentation")),
            viewer=_build(ViewerCfg, cfg.get("viewer")),
            replay=_build(ReplayCfg, cfg.get("replay")),
            bag=source.get("bag"),
            images=list(source.get("images") or []),
            logging=cfg.get("logging", {}) or {},
        )


def run(cfg: AppConfig) -> int:
    """Build the configured source and run the viewer; return frames shown."""

    Logger.configure(
        level=cfg.logging.get("level"),
        log_dir=cfg.logging.get("log_dir"),
        json_format=cfg.logging.get("json"),
    )
    logger = Logger.get_logger("main")
    ErrorTracker.install_excepthook()
    source = make_source(
        bag=cfg.bag,
        images=cfg.images,
        stream_cfg=cfg.stream,
        replay_cfg=cfg.replay,
    )
    frames = run_viewer(source, cfg.binding, cfg.segmentation, cfg.viewer)
    logger.info(f"Done, {frames} frames processed")
    return frames


@hydra.main(version_base=None, config_path=str(paths.CONF_DIR), config_name="app")
def main(cfg: DictConfig) -> None:
    cfg_dict = cast(dict[str, Any], OmegaConf.to_container(cfg, resolve=True))
    run(AppConfig.from_dict(cfg_dict))


if __name__ == "__main__":
    main()
