from .visualize import draw_detections, format_label

__all__ = ["draw_detections", "format_label"]
