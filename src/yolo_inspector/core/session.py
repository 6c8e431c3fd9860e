"""Annotation session: the labels of the image under review and their persistence."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import StorageError
from .models import Label, image_key, merge_labels
from .yolo_format import LabelStore, default_class_names, parse_labels, save_class_names, serialize_labels

logger = logging.getLogger(__name__)

# Image filter values besides a class ID
FILTER_ALL = -1
FILTER_UNLABELED = -2


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class AnnotationSession:
    """
    Working state of a review session.

    Holds the image list, the label store, cached model predictions and
    the working label collection of the current image (saved labels
    followed by cached predictions). Predictions are never written to
    disk until accepted or edited.
    """

    def __init__(
        self,
        store: Optional[LabelStore] = None,
        image_names: Optional[Sequence[str]] = None,
        class_names: Optional[Sequence[str]] = None,
        classes_path: Optional[Path] = None
    ) -> None:
        self.store = store if store is not None else LabelStore()
        self.image_names: List[str] = sorted(image_names or [])
        self.class_names: List[str] = list(class_names) if class_names else default_class_names()
        self.classes_path = Path(classes_path) if classes_path is not None else None

        self.predictions: Dict[str, List[Label]] = {}
        self.filter_class = FILTER_ALL
        self.filtered_images: List[str] = list(self.image_names)
        self.image_index = 0
        self.labels: List[Label] = []
        self.current_label: Optional[int] = None
        self.pending_index: Optional[int] = None
        self.save_status = SaveStatus.IDLE
        self._usage: Optional[Dict[int, int]] = None

        self.open_image(0)

    # === Images ===

    def set_images(self, image_names: Sequence[str]) -> None:
        """Replace the image list and open the first image."""
        self.image_names = sorted(image_names)
        self.predictions.clear()
        self.refresh_filter()
        self.open_image(0)

    def _matches_filter(self, name: str) -> bool:
        if self.filter_class == FILTER_ALL:
            return True
        labels = self.store.labels(image_key(name))
        if self.filter_class == FILTER_UNLABELED:
            return not labels
        return any(label.class_id == self.filter_class for label in labels)

    def refresh_filter(self) -> None:
        """
        Recompute the filtered image list.

        The list is a snapshot: saving labels does not move images in or
        out of it until the filter is refreshed.
        """
        self.filtered_images = [name for name in self.image_names if self._matches_filter(name)]

    @property
    def image_name(self) -> Optional[str]:
        images = self.filtered_images
        if 0 <= self.image_index < len(images):
            return images[self.image_index]
        return None

    @property
    def image_key(self) -> Optional[str]:
        name = self.image_name
        return image_key(name) if name is not None else None

    def set_filter(self, filter_class: int) -> None:
        """
        Filter images by class.

        Args:
            filter_class: FILTER_ALL, FILTER_UNLABELED or a class ID
        """
        self.filter_class = filter_class
        self.refresh_filter()
        logger.info(f"Image filter set to {filter_class}: {len(self.filtered_images)} images")
        self.open_image(0)

    def labels_for(self, name: str) -> List[Label]:
        """Saved labels followed by cached predictions for any image."""
        key = image_key(name)
        return merge_labels(self.store.labels(key), self.predictions.get(key, []))

    def open_image(self, index: int) -> None:
        """
        Load the working collection for an image.

        The index is clamped to the filtered image list. The first label is
        selected, or the first label of the filter class when filtering.
        """
        images = self.filtered_images
        self.image_index = max(0, min(index, len(images) - 1))
        self.pending_index = None
        self.save_status = SaveStatus.IDLE

        name = self.image_name
        if name is None:
            self.labels = []
            self.current_label = None
            return

        self.labels = self.labels_for(name)
        self.current_label = 0 if self.labels else None
        if self.labels and self.filter_class >= 0:
            for i, label in enumerate(self.labels):
                if label.class_id == self.filter_class:
                    self.current_label = i
                    break

    def next_image(self, step: int = 1) -> None:
        """
        Advance by step images, stopping at the last one.

        A step larger than one overshooting the end lands on the last image.
        """
        last = len(self.filtered_images) - 1
        if self.image_index < last:
            self.open_image(min(self.image_index + step, last))

    def prev_image(self, step: int = 1) -> None:
        if self.image_index > 0:
            self.open_image(max(self.image_index - step, 0))

    # === Labels ===

    @property
    def selected_label(self) -> Optional[Label]:
        if self.current_label is not None and 0 <= self.current_label < len(self.labels):
            return self.labels[self.current_label]
        return None

    @property
    def has_predictions(self) -> bool:
        return any(label.is_predicted for label in self.labels)

    def select_label(self, index: Optional[int]) -> None:
        if index is not None and not 0 <= index < len(self.labels):
            return
        self.current_label = index

    def next_label(self) -> None:
        if not self.labels:
            return
        current = self.current_label if self.current_label is not None else -1
        self.current_label = (current + 1) % len(self.labels)

    def prev_label(self) -> None:
        if not self.labels:
            return
        current = self.current_label if self.current_label is not None else 0
        self.current_label = (current - 1) % len(self.labels)

    def _sync_prediction_cache(self) -> None:
        key = self.image_key
        if key is None:
            return
        remaining = [label for label in self.labels if label.is_predicted]
        if remaining:
            self.predictions[key] = remaining
        else:
            self.predictions.pop(key, None)

    def update_label(self, label: Label, index: Optional[int] = None) -> bool:
        """
        Replace a label and save.

        An edited prediction becomes a regular label and leaves the
        prediction cache.

        Args:
            label: New label value
            index: Label to replace, defaults to the current label

        Returns:
            True if saved successfully
        """
        if index is None:
            index = self.current_label
        if index is None or not 0 <= index < len(self.labels):
            return False

        was_predicted = self.labels[index].is_predicted
        self.labels[index] = label.accepted() if label.is_predicted else label
        if was_predicted:
            self._sync_prediction_cache()
        if self.pending_index == index:
            self.pending_index = None
        return self.save()

    def create_label(self, label: Label) -> int:
        """
        Append a new label awaiting a class.

        The label is selected and marked pending; it is saved once a class
        is assigned.

        Returns:
            Index of the new label
        """
        self.labels.append(Label(class_id=0, x=label.x, y=label.y, w=label.w, h=label.h))
        index = len(self.labels) - 1
        self.current_label = index
        self.pending_index = index
        logger.debug(f"Created pending label {index}")
        return index

    def assign_class(self, class_id: int) -> bool:
        """Set the class of the current label and save."""
        label = self.selected_label
        if label is None:
            return False
        usage = self.class_usage()
        usage[class_id] = usage.get(class_id, 0) + 1
        return self.update_label(label.with_class(class_id))

    def cancel_pending(self) -> bool:
        """Drop the label awaiting a class, selecting the last label."""
        index = self.pending_index
        if index is None or index >= len(self.labels):
            return False
        del self.labels[index]
        self.pending_index = None
        self.current_label = max(0, len(self.labels) - 1) if self.labels else None
        return True

    def delete_current_label(self) -> bool:
        """
        Delete the current label, selecting the previous one.

        Deleting a prediction only updates the prediction cache.

        Returns:
            True if a label was deleted
        """
        index = self.current_label
        if index is None or not 0 <= index < len(self.labels):
            return False

        if index == self.pending_index:
            self.pending_index = None
        elif self.pending_index is not None and self.pending_index > index:
            self.pending_index -= 1

        removed = self.labels.pop(index)
        self.current_label = max(0, index - 1) if self.labels else None

        if removed.is_predicted:
            self._sync_prediction_cache()
        else:
            self.save()
        return True

    def set_predictions(self, key: str, labels: Sequence[Label]) -> None:
        """
        Cache model predictions for an image.

        An empty prediction list leaves the cache untouched.
        """
        if not labels:
            return
        self.predictions[key] = [
            label if label.is_predicted else Label(
                class_id=label.class_id, x=label.x, y=label.y, w=label.w, h=label.h,
                is_predicted=True, confidence=label.confidence,
            )
            for label in labels
        ]
        logger.info(f"Cached {len(labels)} predictions for {key}")
        if key == self.image_key:
            self.labels = merge_labels(
                [label for label in self.labels if not label.is_predicted],
                self.predictions[key],
            )
            if self.current_label is None:
                self.current_label = 0

    def accept_predictions(self) -> bool:
        """Turn every prediction of the current image into a saved label."""
        if not self.has_predictions:
            return False
        self.labels = [label.accepted() for label in self.labels]
        if self.image_key is not None:
            self.predictions.pop(self.image_key, None)
        return self.save()

    def save(self) -> bool:
        """
        Write the current image's non-predicted labels.

        Returns:
            True if saved successfully
        """
        key = self.image_key
        if key is None:
            return False

        saved = [label for label in self.labels if not label.is_predicted]
        self.save_status = SaveStatus.SAVING
        try:
            self.store.set(key, serialize_labels(saved))
        except StorageError as e:
            logger.error(f"Error saving labels for {key}: {e}")
            self.save_status = SaveStatus.ERROR
            return False

        self.save_status = SaveStatus.SAVED
        return True

    # === Classes ===

    def class_name(self, class_id: int) -> str:
        if 0 <= class_id < len(self.class_names):
            return self.class_names[class_id]
        return str(class_id)

    def add_class(self, name: str) -> Optional[int]:
        """
        Append a class, writing the classes file when one is configured.

        Returns:
            The new class ID, or None for a blank name
        """
        name = name.strip()
        if not name:
            return None
        self.class_names.append(name)
        if self.classes_path is not None:
            try:
                save_class_names(self.classes_path, self.class_names)
            except StorageError as e:
                logger.error(f"Error saving classes: {e}")
        return len(self.class_names) - 1

    def class_usage(self) -> Dict[int, int]:
        """
        Usage count per class ID.

        Seeded once from the saved labels of all images, then bumped each
        time a class is assigned.
        """
        if self._usage is None:
            self._usage = {}
            for key in self.store.keys():
                for label in parse_labels(self.store.get(key)):
                    self._usage[label.class_id] = self._usage.get(label.class_id, 0) + 1
        return self._usage

    def ranked_classes(self, search: str = "") -> List[Tuple[int, str]]:
        """
        Classes ordered for the class picker.

        Most used classes come first, ties keep class ID order.

        Args:
            search: Case-insensitive substring filter

        Returns:
            List of (class_id, name)
        """
        usage = self.class_usage()
        ranked = sorted(enumerate(self.class_names), key=lambda item: (-usage.get(item[0], 0), item[0]))
        term = search.lower()
        if term:
            ranked = [item for item in ranked if term in item[1].lower()]
        return ranked
