"""
Image preprocessing shared by the recognizers.
"""

import cv2
import numpy as np

EDGE_THRESHOLD = 100


def to_equalized_gray(image: np.ndarray) -> np.ndarray:
    """Convert a BGR (or already single-channel) image to equalized grayscale."""
    if image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image
    if gray.dtype != np.uint8:
        gray = cv2.convertScaleAbs(gray)
    return cv2.equalizeHist(gray)


def create_edge_map(image: np.ndarray, threshold: int = EDGE_THRESHOLD) -> np.ndarray:
    """
    Build a single-channel edge map of the same size as the input.

    The image is blurred (3x3), run through Canny with thresholds
    (threshold, 2 * threshold), and the resulting contours are drawn in white
    on a black canvas.
    """
    if image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image
    gray = cv2.blur(gray, (3, 3))
    canny = cv2.Canny(gray, threshold, threshold * 2)

    contours, _ = cv2.findContours(canny, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
    edge_map = np.zeros(canny.shape, dtype=np.uint8)
    cv2.drawContours(edge_map, contours, -1, 255)
    return edge_map


def lower_right_quadrant(shape) -> tuple:
    """(x, y, w, h) of the lower-right quadrant for an image of the given shape."""
    height, width = shape[:2]
    return (width // 2, height // 2, width // 2, height // 2)
