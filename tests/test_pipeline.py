import numpy as np
import cv2
import pytest

import framelab.pipeline as pipe
from framelab.models import FaceBox, FaceFilterMode, SnapshotMode
from framelab.pipeline import FrameProcessor, OUTPUT_NAMES

B = (10, 12, 40, 40, 6)
C = (50, 20, 30, 30, 5)


def test_process_publishes_all_outputs(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector([[B]]))
    out = proc.process(make_frame())
    assert set(out.frames) == set(OUTPUT_NAMES)
    assert all(f.shape == (240, 320, 4) for f in out.frames.values())
    assert out.motion.warmup
    assert out.mode == SnapshotMode.LIVE
    assert out.face_box == FaceBox(x=10, y=12, w=40, h=40, score=6)
    assert out.face_label == "Face Detected"
    assert out.filtered_face is None


def test_freeze_then_unfreeze(settings, make_frame, make_detector):
    det = make_detector([[B], [C]])
    proc = FrameProcessor(settings, det)
    live = proc.process(make_frame(rgb=(30, 60, 90)))

    proc.toggle_snapshot()
    frozen = proc.process(make_frame(rgb=(1, 2, 3)))
    assert frozen.mode == SnapshotMode.FROZEN
    assert frozen.face_box == live.face_box
    assert frozen.face_box is not live.face_box
    assert det.calls == 1  # detector idle while frozen
    # display kernels read the snapshot at working resolution
    assert frozen.frames["cmy"].shape == (120, 160, 4)
    assert frozen.snapshot.shape == (120, 160, 4)
    assert frozen.filtered_face is not None

    proc.toggle_snapshot()
    back = proc.process(make_frame())
    assert back.mode == SnapshotMode.LIVE
    assert proc.snapshot.frozen_face_box is None and proc.snapshot.frozen_frame is None
    assert back.face_box == FaceBox(x=50, y=20, w=30, h=30, score=5)


def test_commands_wait_for_next_tick(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector())
    proc.process(make_frame())
    proc.toggle_snapshot()
    proc.select_filter(FaceFilterMode.PIXELATE)
    proc.set_thresholds(red=10, hsv=300)
    assert proc.snapshot.is_live()
    assert proc.filter_mode == FaceFilterMode.NONE
    assert proc.thresholds.red == 128

    out = proc.process(make_frame())
    assert out.mode == SnapshotMode.FROZEN
    assert out.filter_mode == FaceFilterMode.PIXELATE
    assert proc.thresholds.red == 10 and proc.thresholds.hsv == 255
    # frozen with no face: nothing to composite
    assert out.face_box is None and out.filtered_face is None


def test_frozen_filter_applies_to_face_region(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector([[B]]))
    proc.process(make_frame(rgb=(200, 10, 10)))
    proc.toggle_snapshot()
    proc.select_filter(FaceFilterMode.GRAYSCALE)
    out = proc.process(make_frame(rgb=(200, 10, 10)))
    region = out.filtered_face
    assert (region.x, region.y) == (10, 12)
    assert region.image.shape == (40, 40, 4)
    # (200+10+10)/3*1.2 = 88
    assert tuple(region.image[0, 0]) == (88, 88, 88, 255)
    assert out.summary().filtered_face.w == 40


def test_motion_runs_every_tick_even_when_frozen(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector())
    proc.process(make_frame())
    proc.toggle_snapshot()
    out = proc.process(make_frame(rgb=(255, 255, 255)))
    assert out.mode == SnapshotMode.FROZEN
    assert out.motion.level == 1.0 and out.motion.alert


def test_detector_fault_is_not_fatal(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector([RuntimeError("capability down")]))
    out = proc.process(make_frame())
    assert out.face_box is None and out.face_label is None


class ScriptedSource:
    def __init__(self, frames):
        self.frames = list(frames)
    def pull(self):
        item = self.frames.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_run_once_skips_missing_frames(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector())
    assert proc.run_once(ScriptedSource([None])) is None
    src = ScriptedSource([make_frame(), None, IOError("unplugged")])
    first = proc.run_once(src)
    assert proc.run_once(src) is first
    assert proc.run_once(src) is first
    assert first.tick == 1


def test_status(settings, make_frame, make_detector):
    proc = FrameProcessor(settings, make_detector())
    assert proc.status().last_tick is None
    proc.process(make_frame())
    st = proc.status()
    assert st.mode == SnapshotMode.LIVE and st.last_tick.tick == 1


def test_analyze_video(tmp_path, settings, make_detector):
    h, w = 48, 64
    path = str(tmp_path / "tiny.avi")
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), 5, (w, h))
    assert writer.isOpened()
    for i in range(4):
        writer.write(np.full((h, w, 3), 0 if i % 2 == 0 else 255, dtype=np.uint8))
    writer.release()

    res = pipe.analyze_video(path, settings, detector=make_detector())
    assert len(res) >= 3
    assert res[0]["motion"]["warmup"] is True
    assert res[1]["motion"]["alert"] is True
    assert res[0]["mode"] == "live"


def test_analyze_video_missing(settings, make_detector):
    with pytest.raises(FileNotFoundError):
        pipe.analyze_video("does_not_exist.mp4", settings, detector=make_detector())
