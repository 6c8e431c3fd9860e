"""Tests for the annotation session controller."""

import pytest

from yolo_inspector.core.models import Label
from yolo_inspector.core.session import (
    FILTER_UNLABELED,
    AnnotationSession,
    SaveStatus,
)
from yolo_inspector.core.yolo_format import LabelStore


@pytest.fixture
def session(labels_dir):
    """Session over a.jpg (2 labels), b.jpg (1 label) and c.jpg (none)."""
    return AnnotationSession(
        store=LabelStore(labels_dir),
        image_names=["c.jpg", "a.jpg", "b.jpg"],
        class_names=["cat", "dog", "bird"],
        classes_path=labels_dir / "classes.txt",
    )


def prediction(class_id=1, confidence=0.9):
    return Label(class_id, 0.8, 0.8, 0.1, 0.1, is_predicted=True, confidence=confidence)


class TestImages:
    """Tests for image navigation and filtering."""

    def test_opens_first_image_sorted(self, session):
        assert session.filtered_images == ["a.jpg", "b.jpg", "c.jpg"]
        assert session.image_name == "a.jpg"
        assert len(session.labels) == 2
        assert session.current_label == 0

    def test_next_and_prev_clamp(self, session):
        session.next_image()
        session.next_image()
        session.next_image()
        assert session.image_name == "c.jpg"
        assert session.labels == []
        assert session.current_label is None

        session.prev_image(10)
        assert session.image_name == "a.jpg"

    def test_page_step_lands_on_last(self, session):
        session.next_image(12)

        assert session.image_name == "c.jpg"

    def test_filter_unlabeled(self, session):
        session.set_filter(FILTER_UNLABELED)

        assert session.filtered_images == ["c.jpg"]
        assert session.image_index == 0

    def test_filter_by_class_selects_matching_label(self, session):
        session.set_filter(1)

        assert session.filtered_images == ["a.jpg"]
        assert session.current_label == 1

    def test_filter_is_snapshot(self, session):
        """Deleting the last label keeps the image in the current list."""
        session.set_filter(2)
        assert session.filtered_images == ["b.jpg"]

        session.delete_current_label()

        assert session.filtered_images == ["b.jpg"]
        session.refresh_filter()
        assert session.filtered_images == []

    def test_empty_session(self):
        session = AnnotationSession()

        assert session.image_name is None
        assert session.labels == []
        assert not session.save()


class TestLabels:
    """Tests for label editing."""

    def test_label_navigation_wraps(self, session):
        session.next_label()
        assert session.current_label == 1
        session.next_label()
        assert session.current_label == 0
        session.prev_label()
        assert session.current_label == 1

    def test_update_label_saves(self, session, labels_dir):
        label = session.labels[0].with_geometry(0.4, 0.4, 0.1, 0.1)

        assert session.update_label(label, 0)
        assert session.save_status == SaveStatus.SAVED
        assert (labels_dir / "a.txt").read_text().splitlines()[0] == "0 0.400000 0.400000 0.100000 0.100000"

    def test_create_assign_flow(self, session, labels_dir):
        """A created label is pending until a class is chosen."""
        index = session.create_label(Label(5, 0.1, 0.1, 0.05, 0.05))

        assert index == 2
        assert session.pending_index == 2
        assert session.current_label == 2
        assert session.labels[2].class_id == 0
        assert len((labels_dir / "a.txt").read_text().splitlines()) == 2

        assert session.assign_class(2)
        assert session.pending_index is None
        assert (labels_dir / "a.txt").read_text().splitlines()[2].startswith("2 ")

    def test_cancel_pending(self, session):
        session.create_label(Label(0, 0.1, 0.1, 0.05, 0.05))

        assert session.cancel_pending()
        assert len(session.labels) == 2
        assert session.pending_index is None
        assert session.current_label == 1
        assert not session.cancel_pending()

    def test_delete_selects_previous(self, session, labels_dir):
        session.select_label(1)

        assert session.delete_current_label()
        assert session.current_label == 0
        assert len((labels_dir / "a.txt").read_text().splitlines()) == 1

    def test_delete_last_label(self, session, labels_dir):
        session.open_image(1)

        session.delete_current_label()

        assert session.current_label is None
        assert (labels_dir / "b.txt").read_text() == ""
        assert not session.delete_current_label()

    def test_delete_before_pending_shifts_index(self, session):
        session.create_label(Label(0, 0.1, 0.1, 0.05, 0.05))
        session.select_label(0)

        session.delete_current_label()

        assert session.pending_index == 1

    def test_select_out_of_range_ignored(self, session):
        session.select_label(7)

        assert session.current_label == 0

    def test_save_failure_sets_error(self, tmp_path):
        session = AnnotationSession(
            store=LabelStore(tmp_path / "missing"),
            image_names=["a.jpg"],
        )
        session.create_label(Label(0, 0.5, 0.5, 0.1, 0.1))

        assert not session.assign_class(1)
        assert session.save_status == SaveStatus.ERROR


class TestPredictions:
    """Tests for model prediction handling."""

    def test_predictions_follow_saved_labels(self, session, labels_dir):
        session.set_predictions("a", [prediction()])

        assert len(session.labels) == 3
        assert session.labels[2].is_predicted
        assert session.has_predictions
        # Predictions never reach the label file
        assert len((labels_dir / "a.txt").read_text().splitlines()) == 2

    def test_predictions_flagged(self, session):
        session.set_predictions("a", [Label(1, 0.8, 0.8, 0.1, 0.1)])

        assert session.predictions["a"][0].is_predicted

    def test_predictions_for_other_image_cached(self, session):
        session.set_predictions("b", [prediction()])

        assert len(session.labels) == 2
        session.open_image(1)
        assert len(session.labels) == 2
        assert session.labels[1].is_predicted

    def test_empty_predictions_ignored(self, session):
        session.set_predictions("a", [])

        assert "a" not in session.predictions

    def test_edit_prediction_commits_it(self, session, labels_dir):
        session.set_predictions("a", [prediction()])
        edited = session.labels[2].with_geometry(0.7, 0.7, 0.1, 0.1)

        session.update_label(edited, 2)

        assert not session.labels[2].is_predicted
        assert "a" not in session.predictions
        assert len((labels_dir / "a.txt").read_text().splitlines()) == 3

    def test_delete_prediction_does_not_save(self, session, labels_dir):
        before = (labels_dir / "a.txt").read_text()
        session.set_predictions("a", [prediction(), prediction(2)])
        session.select_label(2)

        session.delete_current_label()

        assert len(session.predictions["a"]) == 1
        assert (labels_dir / "a.txt").read_text() == before

    def test_accept_predictions(self, session, labels_dir):
        session.set_predictions("a", [prediction()])

        assert session.accept_predictions()
        assert not session.has_predictions
        assert "a" not in session.predictions
        assert (labels_dir / "a.txt").read_text().splitlines()[2].startswith("1 0.800000")

    def test_accept_without_predictions(self, session):
        assert not session.accept_predictions()


class TestClasses:
    """Tests for class management."""

    def test_class_name_fallback(self, session):
        assert session.class_name(1) == "dog"
        assert session.class_name(42) == "42"

    def test_add_class_writes_file(self, session, labels_dir):
        assert session.add_class("  fish ") == 3
        assert (labels_dir / "classes.txt").read_text().splitlines() == ["cat", "dog", "bird", "fish"]

    def test_add_blank_class(self, session):
        assert session.add_class("   ") is None

    def test_class_usage(self, session):
        assert session.class_usage() == {0: 1, 1: 1, 2: 1}

    def test_assign_bumps_usage(self, session):
        session.create_label(Label(0, 0.2, 0.2, 0.1, 0.1))
        session.assign_class(1)

        assert session.class_usage()[1] == 2
        assert session.ranked_classes()[0] == (1, "dog")

    def test_usage_counted_once(self, session, monkeypatch):
        session.class_usage()
        monkeypatch.setattr(session.store, "keys", lambda: pytest.fail("label store rescanned"))

        assert session.ranked_classes()[0] == (0, "cat")

    def test_ranked_by_usage(self, labels_dir):
        (labels_dir / "c.txt").write_text("2 0.5 0.5 0.1 0.1")
        session = AnnotationSession(
            store=LabelStore(labels_dir),
            image_names=["a.jpg"],
            class_names=["cat", "dog", "bird"],
        )

        ranked = session.ranked_classes()

        assert ranked[0] == (2, "bird")
        assert [class_id for class_id, _ in ranked[1:]] == [0, 1]

    def test_ranked_search(self, session):
        assert session.ranked_classes("DO") == [(1, "dog")]
