from __future__ import annotations

import argparse
import logging
import os
import platform
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from musicmotion_seq.audio import SynthSink  # noqa: E402
from musicmotion_seq.clock import SequencerClock  # noqa: E402
from musicmotion_seq.config import BPM_MAX, BPM_MIN, TIMELINE_MAX, TIMELINE_MIN, SequencerConfig  # noqa: E402
from musicmotion_seq.detector import LandmarkSource  # noqa: E402
from musicmotion_seq.drawing import draw_overlay  # noqa: E402
from musicmotion_seq.session import SequencerSession  # noqa: E402
from musicmotion_seq.types import DRUM_TRACKS, EditMode  # noqa: E402

KEYS_HELP = "d/s: drums/strings | 1-4: drum track | +/-: slots | [ ]: bpm | space: play/pause | c: clear | q: quit"


def int_in_range(lo: int, hi: int):
    def parse(text: str) -> int:
        try:
            v = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"expected an integer, got {text!r}") from None
        if not (lo <= v <= hi):
            raise argparse.ArgumentTypeError(f"must be between {lo} and {hi}, got {v}")
        return v

    return parse


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Hand-gesture step sequencer (drum ring + strings timeline).")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument(
        "--bpm", type=int_in_range(BPM_MIN, BPM_MAX), default=120, help=f"Starting tempo ({BPM_MIN}..{BPM_MAX})"
    )
    ap.add_argument(
        "--slots",
        type=int_in_range(TIMELINE_MIN, TIMELINE_MAX),
        default=8,
        help=f"Starting strings timeline length ({TIMELINE_MIN}..{TIMELINE_MAX})",
    )
    ap.add_argument("--sample-rate", type=int, default=48000)
    ap.add_argument("--tasks-model", default="models/hand_landmarker.task")
    ap.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING)")
    return ap


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    cfg = SequencerConfig(bpm_default=args.bpm, timeline_default=args.slots)

    if platform.system() == "Darwin":
        cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
    else:
        cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        raise RuntimeError(
            f"Could not open camera index {args.camera}. "
            "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal."
        )
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, args.width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, args.height)

    clock = SequencerClock(bpm=cfg.bpm_default, lookahead_s=cfg.lookahead_s)
    window_name = "musicmotion - sequencer"

    with SynthSink(clock.now, sample_rate=args.sample_rate) as sink, LandmarkSource(tasks_model_path=args.tasks_model) as source:
        session = SequencerSession(sink, cfg, clock=clock)
        while True:
            ok, frame = cap.read()
            if not ok:
                break
            h, w = frame.shape[:2]

            result = session.process_frame(source.read(frame), w, h)
            session.tick()

            display = cv2.flip(frame, 1)
            draw_overlay(display, session, result.signals)
            cv2.putText(display, KEYS_HELP, (12, 56), cv2.FONT_HERSHEY_SIMPLEX, 0.45, (200, 200, 200), 1, cv2.LINE_AA)
            cv2.imshow(window_name, display)

            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break
            if key == ord("d"):
                session.set_mode(EditMode.DRUMS)
            elif key == ord("s"):
                session.set_mode(EditMode.STRINGS)
            elif ord("1") <= key <= ord("4"):
                session.select_track(DRUM_TRACKS[key - ord("1")])
            elif key in (ord("+"), ord("=")):
                session.grow_timeline()
            elif key == ord("-"):
                session.shrink_timeline()
            elif key == ord("["):
                session.set_bpm(session.bpm - 5)
            elif key == ord("]"):
                session.set_bpm(session.bpm + 5)
            elif key == ord(" "):
                session.toggle_all()
            elif key == ord("c"):
                session.clear_all()

    cap.release()
    cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
