from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, Optional

from mandelanim.config import load_config, normalise_config
from mandelanim.errors import MandelanimError
from mandelanim.pipeline import run_image, run_test, run_video
from mandelanim.renderers.cpu_parallel import BACKENDS, default_worker_count
from mandelanim.util.logging_setup import LEVELS, get_logger, logging_session, parse_level
from mandelanim.util.manifest import build_manifest, write_manifest
from mandelanim.video.opencv_writer import encode_with_opencv
from mandelanim.video.png_stream import DirectorySink, FileSink, StreamSink


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelanim", description="Mandelbrot image and zoom animation renderer.")
    p.add_argument("--log-level", type=str, default="INFO", choices=list(LEVELS), help="Log level.")
    p.add_argument("--log-file", type=str, default="render.log", help="Log file path (rotating). Set empty to disable file logging.")
    p.add_argument("--workers", type=int, default=None, help="Worker count (default: CPU count - 2, at least 1).")
    p.add_argument("--backend", type=str, default="process", choices=list(BACKENDS), help="Worker pool kind.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Render according to run_type in the config (image, video or test).")
    r.add_argument("config", type=str, help="Path to config JSON.")
    r.add_argument("--output", type=str, default=None, help="Write the image to this file instead of stdout.")
    r.add_argument("--frames-dir", type=str, default=None, help="Write video frames as PNG files here instead of stdout.")
    r.add_argument("--manifest", type=str, default=None, help="Write a JSON run manifest to this path.")

    e = sub.add_parser("encode", help="Encode a directory of PNG frames into an MP4 video using OpenCV.")
    e.add_argument("--input-dir", type=str, default="frames", help="Frames directory.")
    e.add_argument("--output", type=str, default="output.mp4", help="Output MP4 file.")
    e.add_argument("--fps", type=int, default=60, help="Frames per second.")

    return p


def _render(args: argparse.Namespace, engine: Dict[str, Any]) -> None:
    logger = get_logger()
    cfg = normalise_config(load_config(args.config))
    run_type = cfg["run_type"]
    logger.info("Run type %s config=%s", run_type, args.config)

    if run_type == "test":
        run_test(cfg, sys.stdout)
    elif run_type == "image":
        if args.output:
            run_image(cfg, FileSink(args.output), engine=engine)
            logger.info("Image written: %s", args.output)
        else:
            run_image(cfg, StreamSink(sys.stdout.buffer), engine=engine)
    else:
        sink = DirectorySink(args.frames_dir) if args.frames_dir else StreamSink(sys.stdout.buffer)
        run_video(cfg, sink, engine=engine)

    if args.manifest:
        engine_info = {
            "backend": engine["backend"],
            "workers": engine["workers"] if engine["workers"] is not None else default_worker_count(),
        }
        write_manifest(args.manifest, build_manifest(config=cfg, engine_info=engine_info))
        logger.info("Run manifest written: %s", args.manifest)


def _dispatch(args: argparse.Namespace, engine: Dict[str, Any]) -> None:
    if args.cmd == "render":
        _render(args, engine)
    elif args.cmd == "encode":
        encode_with_opencv(input_dir=args.input_dir, output_file=args.output, fps=args.fps)
    else:
        raise RuntimeError("Unknown command.")


def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None

    try:
        log_level = parse_level(args.log_level)
        with logging_session(log_level, log_file) as log_queue:
            engine = {"workers": args.workers, "backend": args.backend, "log_queue": log_queue, "log_level": log_level}
            _dispatch(args, engine)
    except MandelanimError as e:
        get_logger().error("%s: %s", type(e).__name__, e)
        return 1
    return 0
