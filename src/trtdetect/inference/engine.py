"""
TensorRT engine runtime.

Deserializes a serialized engine, allocates its I/O tensors on the GPU with
PyTorch and executes it on a dedicated CUDA stream. The same buffers serve
both plain execution and CUDA graph capture, so a captured graph replays
against fixed device addresses.

Engines are expected to take one NCHW float input (dynamic or static batch)
and to end in an NMS stage producing num_dets/det_boxes/det_scores/det_classes.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Tuple

import numpy as np
import torch

from trtdetect.errors import EngineLoadError, InferenceError, ShapeMismatchError
from .processing import OUTPUT_NAMES

logger = logging.getLogger(__name__)


def _torch_dtype(np_dtype) -> torch.dtype:
    return torch.from_numpy(np.empty(0, dtype=np_dtype)).dtype


class TensorRTEngine:
    """
    A loaded engine with its execution context and device buffers.

    Attributes:
        batch: Maximum images per execution.
        input_hw: Network input (height, width).
        dynamic: Whether the batch dimension can change per execution.
    """

    def __init__(self, engine_path: str, device: int = 0):
        if not os.path.isfile(engine_path):
            raise EngineLoadError(f"Engine path does not exist: {engine_path}")
        try:
            import tensorrt as trt  # type: ignore
        except Exception as e:  # pragma: no cover
            raise EngineLoadError(
                "TensorRT is not installed. Install with `pip install tensorrt`."
            ) from e
        if not torch.cuda.is_available():
            raise EngineLoadError("CUDA is not available; TensorRT engines need a GPU")

        self.engine_path = engine_path
        self._trt = trt
        self._device = torch.device(f"cuda:{device}")

        try:
            with open(engine_path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise EngineLoadError(f"Failed to read engine {engine_path}: {e}") from e

        self._runtime = trt.Runtime(trt.Logger(trt.Logger.WARNING))
        self._engine = self._runtime.deserialize_cuda_engine(data)
        if self._engine is None:
            raise EngineLoadError(f"Failed to deserialize engine: {engine_path}")
        self._context = self._engine.create_execution_context()
        if self._context is None:
            raise EngineLoadError(f"Failed to create execution context for {engine_path}")

        self.stream = torch.cuda.Stream(device=self._device)
        self._input_name, self._max_input_shape, self.dynamic = self._inspect_input()
        self.batch = int(self._max_input_shape[0])
        self.input_hw: Tuple[int, int] = (int(self._max_input_shape[2]), int(self._max_input_shape[3]))
        self._buffers = self._allocate_buffers()

        logger.info(
            f"Loaded engine {engine_path}: batch={self.batch}, input={self.input_hw}, "
            f"dynamic={self.dynamic}"
        )

    def _inspect_input(self) -> Tuple[str, Tuple[int, ...], bool]:
        trt = self._trt
        inputs: List[str] = []
        outputs: List[str] = []
        for i in range(self._engine.num_io_tensors):
            name = self._engine.get_tensor_name(i)
            if self._engine.get_tensor_mode(name) == trt.TensorIOMode.INPUT:
                inputs.append(name)
            else:
                outputs.append(name)

        if len(inputs) != 1:
            raise EngineLoadError(f"Expected exactly one input tensor, found {len(inputs)}")
        missing = [name for name in OUTPUT_NAMES if name not in outputs]
        if missing:
            raise EngineLoadError(f"Engine is missing output tensors: {', '.join(missing)}")

        name = inputs[0]
        shape = tuple(int(d) for d in self._engine.get_tensor_shape(name))
        if len(shape) != 4:
            raise EngineLoadError(f"Expected an NCHW input, got shape {shape}")
        if -1 in shape:
            # Profile 0 max shape bounds every execution.
            max_shape = tuple(int(d) for d in self._engine.get_tensor_profile_shape(name, 0)[2])
            return name, max_shape, shape[0] == -1
        return name, shape, False

    def _allocate_buffers(self) -> Dict[str, torch.Tensor]:
        self._context.set_input_shape(self._input_name, self._max_input_shape)
        buffers: Dict[str, torch.Tensor] = {}
        for i in range(self._engine.num_io_tensors):
            name = self._engine.get_tensor_name(i)
            shape = tuple(int(d) for d in self._context.get_tensor_shape(name))
            dtype = _torch_dtype(self._trt.nptype(self._engine.get_tensor_dtype(name)))
            tensor = torch.zeros(shape, dtype=dtype, device=self._device)
            self._context.set_tensor_address(name, tensor.data_ptr())
            buffers[name] = tensor
        return buffers

    def _bind_batch(self, n: int) -> int:
        """Set the execution batch and return how many slots will run."""
        if n < 1 or n > self.batch:
            raise ShapeMismatchError(
                f"Batch of {n} does not fit engine batch {self.batch}",
                expected=(self.batch,),
                actual=(n,),
            )
        if not self.dynamic:
            return self.batch
        shape = (n,) + tuple(self._max_input_shape[1:])
        if not self._context.set_input_shape(self._input_name, shape):
            raise InferenceError(f"Engine rejected input shape {shape}")
        return n

    def _load_input(self, blob: np.ndarray, slots: int) -> None:
        n = blob.shape[0]
        expected = (slots,) + tuple(self._max_input_shape[1:])
        if tuple(blob.shape[1:]) != expected[1:]:
            raise ShapeMismatchError(
                f"Input blob shape {blob.shape} does not match engine input {expected}",
                expected=expected,
                actual=blob.shape,
            )
        target = self._buffers[self._input_name]
        with torch.cuda.stream(self.stream):
            target[:n].copy_(torch.from_numpy(blob))
            if slots > n:
                target[n:slots].zero_()

    def _execute(self) -> None:
        if not self._context.execute_async_v3(self.stream.cuda_stream):
            raise InferenceError("TensorRT execution failed")

    def _read_outputs(self, n: int) -> Dict[str, np.ndarray]:
        self.stream.synchronize()
        return {name: self._buffers[name][:n].cpu().numpy() for name in OUTPUT_NAMES}

    def infer(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        """
        Execute the engine on an NCHW float32 blob.

        Returns host copies of the output tensors for the first blob.shape[0]
        slots. Static-batch engines run zero-padded full batches.
        """
        n = int(blob.shape[0])
        try:
            slots = self._bind_batch(n)
            self._load_input(blob, slots)
            self._execute()
            return self._read_outputs(n)
        except RuntimeError as e:
            raise InferenceError(f"Inference failed: {e}") from e

    def capture(self, batch_size: int) -> "CapturedGraph":
        """
        Fix the input shape at batch_size and record one execution as a CUDA graph.

        TensorRT needs one regular enqueue after a shape change before the
        launch can be captured.
        """
        try:
            slots = self._bind_batch(batch_size)
            self._buffers[self._input_name].zero_()
            self._execute()
            self.stream.synchronize()

            graph = torch.cuda.CUDAGraph()
            with torch.cuda.graph(graph, stream=self.stream):
                self._execute()
            self.stream.synchronize()
        except RuntimeError as e:
            raise InferenceError(f"CUDA graph capture failed: {e}") from e

        logger.info(f"Captured CUDA graph for batch {batch_size} ({slots} slots)")
        return CapturedGraph(self, graph, batch_size, slots)


class CapturedGraph:
    """A recorded engine launch bound to one batch size."""

    def __init__(self, engine: TensorRTEngine, graph: Any, batch_size: int, slots: int):
        self._engine = engine
        self._graph = graph
        self.batch_size = batch_size
        self._slots = slots

    def replay(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        if blob.shape[0] != self.batch_size:
            raise ShapeMismatchError(
                f"Captured graph expects a batch of {self.batch_size}, got {blob.shape[0]}",
                expected=(self.batch_size,),
                actual=(blob.shape[0],),
            )
        try:
            self._engine._load_input(blob, self._slots)
            with torch.cuda.stream(self._engine.stream):
                self._graph.replay()
            return self._engine._read_outputs(self.batch_size)
        except RuntimeError as e:
            raise InferenceError(f"CUDA graph replay failed: {e}") from e
