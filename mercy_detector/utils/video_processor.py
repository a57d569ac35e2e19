"""
Video processing utilities.

Frame iteration for the detector. Frames are yielded strictly in video order
together with their index in the source video, so per-frame ground truth can
be looked up even when frames are sampled.
"""

from typing import Iterator, List, Optional, Tuple

import cv2
import numpy as np
from loguru import logger

from mercy_detector.utils.config import Config


class VideoProcessor:
    """
    Processing utilities to read frames from videos.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        # Frame rate of the most recently opened video (None if unknown)
        self.fps: Optional[float] = None

    def iter_frames(
        self,
        video_path: str,
        sample_rate: Optional[int] = None,
        max_frames: Optional[int] = None,
    ) -> Iterator[Tuple[int, np.ndarray]]:
        """
        Yield ``(frame_index, frame)`` pairs from a video file.

        Args:
            video_path: Path to the video file
            sample_rate: Yield every Nth frame (default from config)
            max_frames: Maximum number of frames to yield (default from config,
                None = all frames)
        """
        sample_rate = max(1, int(sample_rate or self.config.FRAME_SAMPLE_RATE))
        if max_frames is None:
            max_frames = self.config.MAX_FRAMES

        logger.info(f"Reading frames from: {video_path}")

        cap = cv2.VideoCapture(video_path)
        if not cap.isOpened():
            raise ValueError(
                f"Could not open video file: {video_path}. Either the path is "
                "invalid or this OpenCV build cannot decode it"
            )

        try:
            total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
            fps = cap.get(cv2.CAP_PROP_FPS)
            self.fps = float(fps) if fps > 0 else None
            duration = total_frames / fps if fps > 0 else 0

            logger.info(
                f"Video properties: {total_frames} frames, {fps:.2f} fps, "
                f"{duration:.2f}s"
            )

            frame_count = 0
            yielded = 0
            while True:
                ret, frame = cap.read()
                if not ret:
                    break

                if frame_count % sample_rate == 0:
                    yield frame_count, frame
                    yielded += 1
                    if max_frames is not None and yielded >= int(max_frames):
                        break

                frame_count += 1

            logger.info(f"Read {yielded} frames from video")
        finally:
            cap.release()

    def extract_frames(
        self,
        video_path: str,
        sample_rate: Optional[int] = None,
        max_frames: Optional[int] = None,
    ) -> List[np.ndarray]:
        """
        Extract frames from a video file into a list.

        Returns:
            List of frames as numpy arrays
        """
        try:
            return [
                frame
                for _, frame in self.iter_frames(video_path, sample_rate, max_frames)
            ]
        except Exception as e:
            logger.error(f"Error extracting frames from {video_path}: {e}")
            raise
