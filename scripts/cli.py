"""
CLI to run a video through the frame pipeline -> JSON of per-tick summaries.
"""
from __future__ import annotations
import argparse, json, logging, os
from framelab.config import Settings
from framelab.pipeline import analyze_video

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--video", required=True, help="Path to input video")
    p.add_argument("--out", default="output/ticks.json", help="Path to output JSON")
    args = p.parse_args()

    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    result = analyze_video(args.video, settings)
    alerts = sum(1 for t in result if t["motion"]["alert"])
    faces = sum(1 for t in result if t["face_box"])
    print(json.dumps({"ticks": len(result), "motion_alerts": alerts, "ticks_with_face": faces}, indent=2))

    out_dir = os.path.dirname(args.out)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, ensure_ascii=False)
    print(f"Tick summaries written to {args.out}")

if __name__ == "__main__":
    main()
