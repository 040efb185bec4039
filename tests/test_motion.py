import numpy as np

from framelab.motion import MotionDetector, MotionSample


def test_first_call_is_warmup(make_frame):
    det = MotionDetector()
    res = det.detect(make_frame(8, 6, (200, 200, 200)))
    assert res.warmup and res.level == 0.0 and res.count == 0
    assert det.warmed_up


def test_identical_frames_have_no_motion(random_frame):
    det = MotionDetector()
    det.detect(random_frame)
    res = det.detect(random_frame.copy())
    assert res.level == 0.0
    assert list(res.samples()) == []
    assert not res.warmup


def test_single_pixel_change(make_frame):
    det = MotionDetector()
    prev = make_frame(10, 8)
    cur = prev.copy()
    cur[3, 7, :3] = (20, 20, 11)  # diff 51 > 50
    cur[5, 2, :3] = (20, 20, 10)  # diff 50, not above threshold
    det.detect(prev)
    res = det.detect(cur)
    assert list(res.samples()) == [MotionSample(x=7, y=3, strength=51)]
    assert res.level == 1 / (10 * 8)


def test_strength_is_unclamped_and_cache_rolls(make_frame):
    det = MotionDetector()
    det.detect(make_frame(4, 4, (0, 0, 0)))
    res = det.detect(make_frame(4, 4, (255, 255, 255)))
    assert res.count == 16 and res.level == 1.0
    assert int(res.strengths.max()) == 765
    assert res.alert
    # cache now holds the white frame
    res = det.detect(make_frame(4, 4, (255, 255, 255)))
    assert res.count == 0


def test_copy_survives_next_tick(make_frame):
    det = MotionDetector()
    det.detect(make_frame(4, 4))
    res = det.detect(make_frame(4, 4, (100, 0, 0)))
    kept = res.copy()
    det.detect(make_frame(4, 4, (100, 0, 0)))
    assert kept.count == 16


def test_size_change_reprimes(make_frame):
    det = MotionDetector()
    det.detect(make_frame(4, 4))
    res = det.detect(make_frame(6, 4, (255, 255, 255)))
    assert res.warmup and res.count == 0
    res = det.detect(make_frame(6, 4))
    assert res.count == 24


def test_reset(make_frame):
    det = MotionDetector()
    det.detect(make_frame(4, 4))
    det.reset()
    assert not det.warmed_up
    assert det.detect(make_frame(4, 4, (255, 0, 0))).warmup
