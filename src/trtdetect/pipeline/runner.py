"""
Batch runner.

Drives images from a file or directory through a detector:
- a single file is decoded, predicted once and optionally saved, untimed
- a directory is split into consecutive chunks of `detector.batch` images
  (the last one may be shorter); each chunk is decoded, predicted in one
  call and optionally rendered and saved

Only the predict call is timed. Decode, colour conversion, rendering and
saving stay outside the measured span, and batches are processed strictly
one after another so no I/O overlaps the timed inference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, TypeVar

from trtdetect.errors import ConfigError
from trtdetect.inference.backend import Detector
from trtdetect.models.config import DEFAULT_WARMUP_INDEX
from trtdetect.models.detection import DetectionResult
from trtdetect.models.image import Image
from trtdetect.models.labels import LabelTable
from trtdetect.observation.images import read_image, to_bgr, write_image
from trtdetect.observation.paths import InputKind, list_images, output_path_for, resolve_input
from trtdetect.ops.timing import BenchmarkMeter
from trtdetect.render.visualize import draw_detections

logger = logging.getLogger(__name__)

T = TypeVar("T")


def iter_batches(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive chunks of at most size items."""
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


@dataclass
class RunnerConfig:
    """
    Configuration for a batch run.

    Attributes:
        output_dir: Directory for annotated images. None disables saving.
        labels: Class names; required when output_dir is set.
        warmup_index: Batches with an index at or below this are not timed.
    """
    output_dir: Optional[str] = None
    labels: Optional[LabelTable] = None
    warmup_index: int = DEFAULT_WARMUP_INDEX

    @property
    def save_results(self) -> bool:
        return self.output_dir is not None


@dataclass
class RunStats:
    """Outcome of a run."""
    image_count: int = 0
    batch_count: int = 0
    measured_batches: int = 0
    host_avg_ms: Optional[float] = None
    device_avg_ms: Optional[float] = None

    @property
    def has_timing(self) -> bool:
        return self.measured_batches > 0


class BatchRunner:
    """
    End-to-end loop over one input path.

    Example:
        detector = create_detector("model.engine")
        runner = BatchRunner(detector, RunnerConfig(output_dir="out", labels=labels))
        stats = runner.run("images/")
    """

    def __init__(
        self,
        detector: Detector,
        config: RunnerConfig,
        meter: Optional[BenchmarkMeter] = None,
    ):
        if config.save_results and config.labels is None:
            raise ConfigError("A label table is required when saving results")
        self.detector = detector
        self.config = config
        self._meter = meter

    def run(self, input_path: str) -> RunStats:
        if resolve_input(input_path) is InputKind.FILE:
            return self.run_file(input_path)
        return self.run_directory(input_path)

    def run_file(self, path: str) -> RunStats:
        image = read_image(path)
        result = self.detector.predict(image)
        if self.config.save_results:
            self._save(path, image, result)
        return RunStats(image_count=1, batch_count=1)

    def run_directory(self, directory: str) -> RunStats:
        files = list_images(directory)
        meter = self._meter or BenchmarkMeter.create(
            warmup_index=self.config.warmup_index,
            stream=self.detector.stream,
        )
        stats = RunStats()

        for index, chunk in enumerate(iter_batches(files, self.detector.batch)):
            images = [read_image(path) for path in chunk]

            with meter.measure(index):
                results = self.detector.predict(images)

            if self.config.save_results:
                for path, image, result in zip(chunk, images, results):
                    self._save(path, image, result)

            stats.batch_count += 1
            stats.image_count += len(chunk)
            logger.debug(f"Batch {index}: {len(chunk)} images")

        stats.measured_batches = meter.count
        averages = meter.averages()
        if averages is not None:
            stats.host_avg_ms, stats.device_avg_ms = averages
        logger.info(
            f"Processed {stats.image_count} images in {stats.batch_count} batches "
            f"({stats.measured_batches} timed)"
        )
        return stats

    def _save(self, path: str, image: Image, result: DetectionResult) -> None:
        bgr = to_bgr(image)
        draw_detections(bgr, result, self.config.labels)
        write_image(output_path_for(self.config.output_dir, path), bgr)
