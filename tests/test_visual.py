import numpy as np

from framelab.compositor import FilteredRegion
from framelab.models import FaceBox, FaceFilterMode
from framelab.motion import MotionDetector
from framelab.pipeline import FrameProcessor
from framelab.visual import compose_mosaic, draw_face_box, paste_region, render_heatmap


def test_draw_face_box_cases():
    frame = np.zeros((40, 40, 3), dtype=np.uint8)
    assert np.array_equal(draw_face_box(frame, None), frame)
    out = draw_face_box(frame, FaceBox(x=30, y=30, w=50, h=50), label="Face Detected")
    assert out.shape == frame.shape and out.any()
    assert not frame.any()


def test_render_heatmap_marks_moving_pixels(make_frame):
    det = MotionDetector()
    prev = make_frame(32, 24)
    cur = prev.copy()
    cur[12, 16, :3] = 255
    det.detect(prev)
    motion = det.detect(cur)
    base = np.zeros((48, 64, 3), dtype=np.uint8)
    out = render_heatmap(base, motion)
    # dot lands near (32, 24) after scaling; red channel (BGR index 2) lit
    assert out[24, 32, 2] > 0
    assert out[0, 0].sum() == 0
    assert render_heatmap(base, motion, size=(16, 12)).shape == (12, 16, 3)


def test_paste_region(make_frame):
    frame = make_frame(10, 10)
    patch = np.full((2, 3, 4), 9, dtype=np.uint8)
    out = paste_region(frame, FilteredRegion(x=4, y=5, image=patch, mode=FaceFilterMode.BLUR))
    assert (out[5:7, 4:7] == 9).all()
    assert not frame[5:7, 4:7, :3].any()
    assert np.array_equal(paste_region(frame, None), frame)


def test_compose_mosaic_live_and_frozen(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector([[(10, 10, 40, 40, 6)]]))
    frame = make_frame(rgb=(120, 80, 40))
    out = proc.process(frame)
    mosaic = compose_mosaic(out, frame)
    assert mosaic.shape == (5 * 120, 3 * 160, 3)

    proc.toggle_snapshot()
    proc.select_filter(FaceFilterMode.PIXELATE)
    out = proc.process(frame)
    assert compose_mosaic(out, frame).shape == (600, 480, 3)
