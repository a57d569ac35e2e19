"""
Tests for VideoProcessor frame iteration.
"""

from unittest.mock import Mock, patch

import cv2
import numpy as np
import pytest

from mercy_detector.utils.config import Config
from mercy_detector.utils.video_processor import VideoProcessor


def _mock_capture(num_frames: int) -> Mock:
    mock_cap = Mock()
    frames = [np.full((48, 64, 3), i, dtype=np.uint8) for i in range(num_frames)]
    mock_cap.read.side_effect = [(True, f) for f in frames] + [(False, None)]
    mock_cap.isOpened.return_value = True
    mock_cap.get.side_effect = lambda prop: {
        cv2.CAP_PROP_FRAME_COUNT: num_frames,
        cv2.CAP_PROP_FPS: 30.0,
    }.get(prop, 0)
    return mock_cap


@patch("mercy_detector.utils.video_processor.cv2.VideoCapture")
def test_extract_frames_sampling_and_max(mock_capture_cls):
    """Test that extract_frames samples frames and respects max_frames."""
    mock_capture_cls.return_value = _mock_capture(10)

    processor = VideoProcessor()
    # sample_rate=2 -> expect 5 frames, max_frames=3 -> expect 3
    out_frames = processor.extract_frames("dummy.mp4", sample_rate=2, max_frames=3)
    assert len(out_frames) == 3
    assert all(isinstance(f, np.ndarray) for f in out_frames)


@patch("mercy_detector.utils.video_processor.cv2.VideoCapture")
def test_iter_frames_keeps_video_indices(mock_capture_cls):
    """Sampled frames carry their index in the source video."""
    mock_cap = _mock_capture(7)
    mock_capture_cls.return_value = mock_cap

    processor = VideoProcessor()
    pairs = list(processor.iter_frames("dummy.mp4", sample_rate=3))
    assert [index for index, _ in pairs] == [0, 3, 6]
    assert int(pairs[1][1][0, 0, 0]) == 3
    assert processor.fps == 30.0
    mock_cap.release.assert_called_once()


@patch("mercy_detector.utils.video_processor.cv2.VideoCapture")
def test_iter_frames_defaults_read_everything(mock_capture_cls):
    """MAX_FRAMES=None means the whole video is read."""
    mock_capture_cls.return_value = _mock_capture(12)

    cfg = Config()
    cfg.FRAME_SAMPLE_RATE = 1
    cfg.MAX_FRAMES = None
    frames = VideoProcessor(cfg).extract_frames("dummy.mp4")
    assert len(frames) == 12


@patch("mercy_detector.utils.video_processor.cv2.VideoCapture")
def test_unopened_video_raises(mock_capture_cls):
    mock_cap = Mock()
    mock_cap.isOpened.return_value = False
    mock_capture_cls.return_value = mock_cap

    with pytest.raises(ValueError, match="Could not open video file"):
        VideoProcessor().extract_frames("missing.mp4")
