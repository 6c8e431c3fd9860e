"""Tests for overlay styling, crop rendering and the viewer widgets."""

import pytest
from PyQt6.QtCore import QPoint, Qt
from PyQt6.QtGui import QColor, QImage, QPixmap
from PyQt6.QtTest import QTest
from PyQt6.QtWidgets import QWidget

from yolo_inspector.core.colors import PENDING_COLOR, class_color, model_color
from yolo_inspector.core.interaction import PointerAction, PointerEvent
from yolo_inspector.core.models import Label
from yolo_inspector.core.session import AnnotationSession
from yolo_inspector.ui.overlay import OverlayOptions, box_visual, label_caption


class TestOverlayStyle:
    """Tests for label captions and visual states."""

    def test_captions(self):
        label = Label(1, 0.5, 0.5, 0.1, 0.1)
        predicted = Label(1, 0.5, 0.5, 0.1, 0.1, is_predicted=True, confidence=0.873)

        assert label_caption(label, "dog") == "dog"
        assert label_caption(label, "dog", pending=True) == "Pending..."
        assert label_caption(predicted, "dog") == "M-dog 87%"

    def test_selected_visual(self):
        visual = box_visual(Label(2, 0.5, 0.5, 0.1, 0.1), 0, "bird", selected_index=0)

        assert visual.selected
        assert visual.handles
        assert visual.line_width == 3
        assert visual.opacity == 1.0
        assert visual.color == class_color(2)
        assert not visual.dashed

    def test_pending_visual(self):
        visual = box_visual(Label(2, 0.5, 0.5, 0.1, 0.1), 0, "bird", selected_index=0, pending_index=0)

        assert visual.color == PENDING_COLOR
        assert visual.dashed
        assert not visual.handles

    def test_prediction_visual(self):
        label = Label(2, 0.5, 0.5, 0.1, 0.1, is_predicted=True, confidence=0.5)

        visual = box_visual(label, 1, "bird", selected_index=0)

        assert visual.color == model_color(2)
        assert visual.dashed
        assert visual.caption_below
        assert visual.opacity == 0.8

    def test_visibility_toggles(self):
        options = OverlayOptions(labels_visible=False)

        assert not options.is_visible(Label(0, 0.5, 0.5, 0.1, 0.1))
        assert options.is_visible(Label(0, 0.5, 0.5, 0.1, 0.1, is_predicted=True))


class TestRenderCrop:
    """Tests for magnified crop rendering."""

    def test_crop_size_and_box(self, qapp):
        from yolo_inspector.ui.magnifier import render_crop

        image = QImage(200, 100, QImage.Format.Format_RGB32)
        image.fill(QColor(0, 0, 0))
        label = Label(0, 0.5, 0.5, 0.1, 0.2)

        crop = render_crop(image, label, 2.0, QColor(255, 0, 0))

        assert (crop.width(), crop.height()) == (40, 40)
        assert crop.pixelColor(10, 20) == QColor(255, 0, 0)
        assert crop.pixelColor(20, 20) == QColor(0, 0, 0)

    def test_magnifier_resets_zoom_on_new_label(self, qapp):
        from yolo_inspector.core.geometry import Point
        from yolo_inspector.ui.magnifier import MagnifierView

        view = MagnifierView()
        image = QImage(100, 100, QImage.Format.Format_RGB32)
        image.fill(QColor(10, 10, 10))
        view.set_image(image)
        view.set_label(Label(0, 0.5, 0.5, 0.2, 0.2))
        view.viewport = view.viewport.zoomed_at(Point(0, 0), 3.0)

        view.set_label(Label(0, 0.5, 0.5, 0.2, 0.2))
        assert view.viewport.scale == 3.0

        view.set_label(Label(1, 0.3, 0.3, 0.2, 0.2))
        assert view.viewport.is_identity
        assert view.crop_image is not None


class TestImageViewer:
    """Tests for ImageViewer gesture wiring."""

    @pytest.fixture
    def viewer(self, qapp):
        from yolo_inspector.ui.image_viewer import ImageViewer

        viewer = ImageViewer()
        viewer.resize(1000, 1000)
        pixmap = QPixmap(1000, 1000)
        pixmap.fill(QColor(0, 0, 0))
        viewer.setPixmap(pixmap)
        return viewer

    def test_create_emits_label(self, viewer):
        created = []
        viewer.label_created.connect(created.append)
        viewer.set_create_mode(True)

        viewer._dispatch(PointerEvent(PointerAction.PRESS, 100, 100))
        viewer._dispatch(PointerEvent(PointerAction.MOVE, 300, 300))
        viewer._dispatch(PointerEvent(PointerAction.RELEASE, 300, 300))

        assert len(created) == 1
        assert created[0].w == pytest.approx(0.2)

    def test_resize_emits_update_without_mutating(self, viewer):
        label = Label(0, 0.5, 0.5, 0.2, 0.2)
        viewer.set_labels([label], selected_index=0)
        updates = []
        viewer.label_updated.connect(lambda index, new: updates.append((index, new)))

        viewer._dispatch(PointerEvent(PointerAction.PRESS, 600, 500))
        viewer._dispatch(PointerEvent(PointerAction.MOVE, 700, 500))

        assert updates[-1][0] == 0
        assert updates[-1][1].w == pytest.approx(0.3)
        assert viewer.labels == [label]

    def test_press_on_empty_clears_selection(self, viewer):
        viewer.set_labels([Label(0, 0.5, 0.5, 0.2, 0.2)], selected_index=0)
        selected = []
        viewer.label_selected.connect(selected.append)

        viewer._dispatch(PointerEvent(PointerAction.PRESS, 50, 50))

        assert selected == [None]
        assert viewer.selected_index is None

    def test_drag_grabs_and_releases_mouse(self, viewer):
        viewer.show()

        QTest.mousePress(viewer, Qt.MouseButton.LeftButton, pos=QPoint(20, 20))
        assert QWidget.mouseGrabber() is viewer

        QTest.mouseRelease(viewer, Qt.MouseButton.LeftButton, pos=QPoint(40, 40))
        assert QWidget.mouseGrabber() is None
        viewer.hide()

    def test_reset_mid_drag_releases_mouse(self, viewer):
        """Resetting the view during a drag leaves no stale mouse grab."""
        viewer.show()

        QTest.mousePress(viewer, Qt.MouseButton.LeftButton, pos=QPoint(20, 20))
        viewer.reset_view()
        QTest.mouseRelease(viewer, Qt.MouseButton.LeftButton, pos=QPoint(20, 20))

        assert not viewer.engine.is_active
        assert QWidget.mouseGrabber() is None
        viewer.hide()


class TestClassSelectorDialog:
    """Tests for the class picker."""

    def test_ranked_entries(self, qapp):
        from yolo_inspector.ui.dialogs.class_selector import ClassSelectorDialog

        session = AnnotationSession(class_names=["cat", "dog"])
        dialog = ClassSelectorDialog(session)

        assert dialog.class_list.count() == 2

        dialog.search_edit.setText("do")
        assert dialog.class_list.count() == 2
        assert dialog.class_list.item(0).text() == "1: dog"

    def test_add_new_class(self, qapp):
        from yolo_inspector.ui.dialogs.class_selector import ClassSelectorDialog

        session = AnnotationSession(class_names=["cat", "dog"])
        dialog = ClassSelectorDialog(session)

        dialog.search_edit.setText("fish")
        dialog._accept_current()

        assert dialog.selected_class == 2
        assert session.class_names == ["cat", "dog", "fish"]
