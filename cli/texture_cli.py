# cli/texture_cli.py
"""Live texture viewer and offline contour segmentation."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Sequence

import cv2

from utils.cli import Command, CommandDispatcher
from utils.config import Config, DEFAULT_CONFIG_PATH
from utils.error_tracker import ErrorTracker, FrameSourceError
from utils.logger import Logger
from utils.settings import (
    IMAGE_EXT,
    BindingCfg,
    ReplayCfg,
    SegmentationCfg,
    StreamCfg,
    ViewerCfg,
    binding,
    paths,
    replay,
    segmentation,
    stream,
    viewer,
)
from vision.camera import FrameSource, ImageFrameSource, collect_image_files, load_images
from vision.render_loop import RenderLoop
from vision.segmentation import ContourSegmenter, stage_grid
from vision.texture_binding import RsTextureBinder

logger = Logger.get_logger("cli.texture")


def make_source(
    bag: str | None = None,
    images: Sequence[str] | None = None,
    stream_cfg: StreamCfg | None = None,
    replay_cfg: ReplayCfg | None = None,
) -> FrameSource:
    """Image replay when ``images`` are given, otherwise RealSense (live or bag)."""

    if images:
        return ImageFrameSource.from_files(images, cfg=replay_cfg)
    from vision.camera.realsense_source import RealSenseFrameSource

    return RealSenseFrameSource(stream_cfg=stream_cfg, bag_file=bag)


def run_viewer(
    source: FrameSource,
    binding_cfg: BindingCfg,
    seg_cfg: SegmentationCfg,
    viewer_cfg: ViewerCfg,
) -> int:
    """Bind ``source`` to a texture and run the render loop until it ends."""

    segmenter = ContourSegmenter(seg_cfg)
    binder = RsTextureBinder.from_config(source, binding_cfg, segmenter)
    loop = RenderLoop(binder, viewer_cfg)
    if viewer_cfg.hotkeys:
        ErrorTracker.install_keyboard_listener(on_stop=loop.stop)
    binder.start()
    try:
        source.start()
        return loop.run()
    finally:
        if viewer_cfg.hotkeys:
            ErrorTracker.stop_keyboard_listener()
        source.stop()
        binder.destroy()


def _load_config(path: str) -> None:
    Config.load(path, force_reload=True)


def _add_view_args(parser: argparse.ArgumentParser) -> None:
    """Arguments for the ``view`` subcommand."""
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="YAML config")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--bag", help="Replay a RealSense .bag file")
    src.add_argument("--images", nargs="+", help="Replay image files or directories")
    parser.add_argument("--stream", help="Stream kind to bind (color, depth, ...)")
    parser.add_argument("--format", help="Pixel format to bind (rgb8, z16, ...)")
    parser.add_argument("--index", type=int, help="Stream index")
    parser.add_argument(
        "--filter", choices=["point", "bilinear", "trilinear"], help="Texture filter"
    )
    parser.add_argument(
        "--no-segmentation", action="store_true", help="Show the raw texture only"
    )
    parser.add_argument("--stages", action="store_true", help="Show pipeline stages")
    parser.add_argument("--headless", action="store_true", help="No preview windows")
    parser.add_argument(
        "--hotkeys", action="store_true", help="Stop on ESC even without window focus"
    )
    parser.add_argument("--max-ticks", type=int, help="Stop after N render ticks")


def _run_view(args: argparse.Namespace) -> None:
    """Stream frames into a texture and display it."""
    _load_config(args.config)
    binding_cfg = Config.dataclass("binding", binding)
    overrides = {
        "stream": args.stream,
        "format": args.format,
        "stream_index": args.index,
        "filter_mode": args.filter,
    }
    binding_cfg = replace(
        binding_cfg, **{k: v for k, v in overrides.items() if v is not None}
    )
    if args.no_segmentation:
        binding_cfg = replace(binding_cfg, segmentation=False)
    viewer_cfg = Config.dataclass("viewer", viewer)
    viewer_cfg = replace(
        viewer_cfg,
        headless=args.headless or viewer_cfg.headless,
        show_stages=args.stages or viewer_cfg.show_stages,
        hotkeys=args.hotkeys or viewer_cfg.hotkeys,
        max_ticks=args.max_ticks if args.max_ticks is not None else viewer_cfg.max_ticks,
    )
    source = make_source(
        bag=args.bag,
        images=args.images,
        stream_cfg=Config.dataclass("stream", stream),
        replay_cfg=Config.dataclass("replay", replay),
    )
    frames = run_viewer(
        source, binding_cfg, Config.dataclass("segmentation", segmentation), viewer_cfg
    )
    logger.info(f"Viewer finished after {frames} frames")


def segment_files(
    inputs: Sequence[str],
    output_dir: str | Path,
    seg_cfg: SegmentationCfg | None = None,
    stages: bool = False,
) -> list[Path]:
    """Outline objects in every input image and write the annotated copies."""

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    files = collect_image_files(inputs)
    segmenter = ContourSegmenter(seg_cfg)
    written: list[Path] = []
    for f in Logger.progress(files, desc="Segment"):
        try:
            (img,) = load_images([f])
        except FrameSourceError as e:
            logger.warning(f"Skipping {f}: {e}")
            continue
        result = segmenter.process(img)
        target = out / f"{f.stem}_contours{IMAGE_EXT}"
        cv2.imwrite(str(target), result.output)
        written.append(target)
        if stages:
            cv2.imwrite(str(out / f"{f.stem}_stages{IMAGE_EXT}"), stage_grid(result))
        logger.debug(f"{f.name}: {len(result.contours)} contours")
    logger.info(f"Wrote {len(written)} images to {out}")
    return written


def _add_segment_args(parser: argparse.ArgumentParser) -> None:
    """Arguments for the ``segment`` subcommand."""
    parser.add_argument("inputs", nargs="+", help="Image files or directories")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="YAML config")
    parser.add_argument(
        "--output", default=str(paths.OUTPUT_DIR), help="Output directory"
    )
    parser.add_argument("--stages", action="store_true", help="Also write stage grids")
    parser.add_argument("--min-area", type=float, help="Drop smaller contours (px^2)")
    parser.add_argument("--centroid", action="store_true", help="Mark largest contour")


def _run_segment(args: argparse.Namespace) -> None:
    """Run the contour pipeline over image files."""
    _load_config(args.config)
    seg_cfg = Config.dataclass("segmentation", segmentation)
    if args.min_area is not None:
        seg_cfg = replace(seg_cfg, min_contour_area=args.min_area)
    if args.centroid:
        seg_cfg = replace(seg_cfg, draw_centroid=True)
    segment_files(args.inputs, args.output, seg_cfg, stages=args.stages)


def create_cli() -> CommandDispatcher:
    """Build the dispatcher with the viewer and segmentation commands."""
    return CommandDispatcher(
        "Camera texture binding",
        [
            Command("view", _run_view, _add_view_args, "Bind a stream and display it"),
            Command(
                "segment", _run_segment, _add_segment_args, "Outline objects in images"
            ),
        ],
    )


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``rs-texture`` script."""
    create_cli().run(argv, logger=logger)


if __name__ == "__main__":
    main()
