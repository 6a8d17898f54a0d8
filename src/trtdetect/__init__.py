"""
trtdetect: batched TensorRT object detection with latency benchmarking.
"""

__version__ = "0.1.0"
