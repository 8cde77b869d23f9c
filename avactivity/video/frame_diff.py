"""Frame-difference predicate: does any pixel change by more than a per-channel threshold."""

import cv2
import numpy as np

# Rows compared per step; the scan returns at the first band holding a changed pixel.
ROW_BAND = 16


class FrameMismatchError(ValueError):
    """Raised when two frames cannot be compared (different dimensions or channel counts)."""

    pass


def frames_differ(frame1: np.ndarray, frame2: np.ndarray, threshold: int, *, row_band: int = ROW_BAND) -> bool:
    """
    True iff some pixel differs by strictly more than threshold in any of its channels.

    Both frames must be uint8 images of identical (rows, cols, channels). Pure: the inputs
    are never modified.
    """
    if frame1.shape != frame2.shape:
        raise FrameMismatchError(f"Frame sizes do not match: {frame1.shape} vs {frame2.shape}.")
    rows = frame1.shape[0]
    for top in range(0, rows, row_band):
        diff = cv2.absdiff(frame1[top : top + row_band], frame2[top : top + row_band])
        if np.any(diff > threshold):
            return True
    return False
