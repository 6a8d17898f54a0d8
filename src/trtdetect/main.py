"""
Command-line driver: run a TensorRT detection engine over images and
report steady-state latency.

Usage:
    trtdetect -e model.engine -i images/ [-o output/ -l labels.txt] [--cudaGraph]

Arguments:
    -e, --engine: Serialized engine file
    -i, --input: Image file or directory of images
    -o, --output: Directory for annotated images (needs --labels)
    -l, --labels: Label file, one class name per line
    --cudaGraph: Use the CUDA graph backend

Settings that have no flag (warm-up window, logging) come from
config/default.yaml and config/config.yaml, see trtdetect.config.
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from trtdetect.config import load_settings
from trtdetect.errors import ConfigError, DetectError
from trtdetect.inference import create_detector
from trtdetect.models.config import Settings
from trtdetect.models.labels import LabelTable
from trtdetect.observation.images import read_image
from trtdetect.observation.paths import (
    InputKind,
    ensure_output_dir,
    list_images,
    require_exists,
    resolve_input,
)
from trtdetect.ops.logging import setup_logging
from trtdetect.pipeline.runner import BatchRunner, RunnerConfig, RunStats

EXIT_FAILURE = 1
MIN_ARGUMENTS = 4
USAGE = "%(prog)s -e <engine> -i <input> [-o <output>] [-l <labels>] [--cudaGraph]"

logger = logging.getLogger("trtdetect")


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on bad arguments."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="trtdetect",
        usage=USAGE,
        description="Batched TensorRT object detection and latency benchmark",
        allow_abbrev=False,
        add_help=False,
    )
    parser.add_argument('-e', '--engine', required=True,
                        help='Path to the serialized engine')
    parser.add_argument('-i', '--input', required=True,
                        help='Image file or directory of images')
    parser.add_argument('-o', '--output', default=None,
                        help='Directory for annotated images')
    parser.add_argument('-l', '--labels', default=None,
                        help='Label file, required with --output')
    parser.add_argument('--cudaGraph', dest='cuda_graph', action='store_true',
                        help='Use the CUDA graph backend')
    return parser


def parse_arguments(argv: List[str]) -> argparse.Namespace:
    parser = build_parser()
    if len(argv) < MIN_ARGUMENTS:
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_FAILURE)
    return parser.parse_args(argv)


def _capture_size(input_path: str, kind: InputKind) -> Tuple[int, int]:
    """(width, height) of the first input image, used to size a CUDA graph."""
    first = input_path if kind is InputKind.FILE else list_images(input_path)[0]
    return read_image(first).size


def run(args: argparse.Namespace, settings: Settings) -> RunStats:
    """Validate paths in order, build the detector and process the input."""
    require_exists(args.engine, "Engine")
    kind = resolve_input(args.input)

    labels: Optional[LabelTable] = None
    if args.output:
        if not args.labels:
            raise ConfigError("Please provide a labels file using -l or --labels.")
        require_exists(args.labels, "Label")
        labels = LabelTable.load(args.labels)
        ensure_output_dir(args.output)

    image_size = _capture_size(args.input, kind) if args.cuda_graph else None
    detector = create_detector(args.engine, use_cuda_graph=args.cuda_graph, image_size=image_size)
    logger.info(f"Using {detector!r}")

    runner = BatchRunner(
        detector,
        RunnerConfig(
            output_dir=args.output or None,
            labels=labels,
            warmup_index=settings.benchmark.warmup_index,
        ),
    )
    return runner.run(args.input)


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function."""
    args = parse_arguments(sys.argv[1:] if argv is None else argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        setup_logging("INFO")
        logger.error(f"Error: {e}")
        return EXIT_FAILURE
    setup_logging(settings.log_level, settings.log_path)

    try:
        stats = run(args, settings)
    except DetectError as e:
        logger.error(f"Error: {e}")
        return EXIT_FAILURE
    except Exception as e:
        logger.exception(f"Error: {e}")
        return EXIT_FAILURE

    if stats.has_timing:
        print(f"Average infer CPU elapsed time: {stats.host_avg_ms:.3f} ms")
        print(f"Average infer GPU elapsed time: {stats.device_avg_ms:.3f} ms")
    print("Inference completed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
