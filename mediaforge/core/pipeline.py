"""Ordered application of image adjustments.

The pipeline sorts the adjustments it receives into a deterministic order
(by adjustment class name, then position, then configuration hash), checks
each one for applicability and applies the eligible ones in sequence.
Sorting by class name puts crop before resize, so crop coordinates are
never evaluated against an already scaled image.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Sequence, Tuple

from PIL import Image

from ..adjustments.base import ImageAdjustment
from ..exceptions import AdjustmentContractViolation
from ..utils.logging import get_logger

logger = get_logger("mediaforge.pipeline")


class AdjustmentPipeline:
    """Applies a set of adjustments to single images or to frame sequences."""

    def __init__(self, frame_workers: int = 1):
        """Initialize the pipeline.

        Args:
            frame_workers: Number of threads used to process frames of a
                multi-frame image; 1 processes frames sequentially
        """
        self.frame_workers = max(1, int(frame_workers))

    @staticmethod
    def order(adjustments: Iterable[object]) -> List[ImageAdjustment]:
        """Validate and sort ``adjustments`` into their application order.

        Raises:
            AdjustmentContractViolation: If any item is not an ImageAdjustment
        """
        items = list(adjustments or ())
        for adjustment in items:
            if not isinstance(adjustment, ImageAdjustment):
                raise AdjustmentContractViolation(
                    f"Could not apply the {type(adjustment).__name__} adjustment to image "
                    f"because it is not an ImageAdjustment."
                )
        return sorted(items, key=lambda adjustment: adjustment.sort_key())

    def apply(self, image: Image.Image, adjustments: Iterable[object]) -> Tuple[Image.Image, bool]:
        """Apply adjustments to one image.

        Returns:
            The resulting image and whether any adjustment was applied
        """
        return self._apply_ordered(image, self.order(adjustments))

    def apply_to_frames(
        self,
        frames: Sequence[Image.Image],
        adjustments: Iterable[object]
    ) -> Tuple[List[Image.Image], bool]:
        """Apply the same ordered adjustments to every frame.

        Frames keep their order in the result whether or not they were
        processed in parallel.

        Returns:
            The transformed frames and whether any adjustment was applied
        """
        ordered = self.order(adjustments)

        if self.frame_workers > 1 and len(frames) > 1:
            with ThreadPoolExecutor(max_workers=self.frame_workers) as executor:
                results = list(executor.map(lambda frame: self._apply_ordered(frame, ordered), frames))
        else:
            results = [self._apply_ordered(frame, ordered) for frame in frames]

        logger.debug(f"Applied adjustments to {len(results)} frames")
        return [frame for frame, _ in results], any(applied for _, applied in results)

    def _apply_ordered(
        self,
        image: Image.Image,
        ordered: Sequence[ImageAdjustment]
    ) -> Tuple[Image.Image, bool]:
        applied_any = False
        for adjustment in ordered:
            if not adjustment.can_be_applied(image):
                logger.debug(f"Skipping {adjustment!r}: not applicable to {image.size} image")
                continue
            image = adjustment.apply_to_image(image)
            applied_any = True
            logger.debug(f"Applied {adjustment!r}, image is now {image.size}")
        return image, applied_any
