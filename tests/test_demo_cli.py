import importlib.util
from pathlib import Path

import pytest

pytest.importorskip("cv2")
try:
    import musicmotion_seq.audio  # noqa: F401
except OSError:  # PortAudio library not installed
    pytest.skip("sounddevice needs PortAudio", allow_module_level=True)

DEMO = Path(__file__).resolve().parents[1] / "scripts" / "sequencer_demo.py"


@pytest.fixture(scope="module")
def demo():
    found = importlib.util.spec_from_file_location("sequencer_demo", DEMO)
    module = importlib.util.module_from_spec(found)
    found.loader.exec_module(module)
    return module


def test_defaults_parse(demo):
    args = demo.build_parser().parse_args([])
    assert args.bpm == 120
    assert args.slots == 8


@pytest.mark.parametrize("argv", [["--bpm", "200"], ["--bpm", "59"], ["--slots", "30"], ["--slots", "0"], ["--bpm", "fast"]])
def test_out_of_range_values_are_usage_errors(demo, argv, capsys):
    with pytest.raises(SystemExit) as info:
        demo.build_parser().parse_args(argv)
    assert info.value.code == 2
    err = capsys.readouterr().err
    assert "between" in err or "integer" in err


def test_bounds_are_inclusive(demo):
    args = demo.build_parser().parse_args(["--bpm", "180", "--slots", "24"])
    assert (args.bpm, args.slots) == (180, 24)
