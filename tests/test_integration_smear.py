#!/usr/bin/env python3

"""
Integration tests that run the full pipeline through ffmpeg and ffprobe.
"""

# Standard Library
import json
import os
import shutil
import subprocess
import sys
import tempfile

# PIP3 modules
import pytest
import PIL.Image

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from smearlib.core.config import SmearConfig
from smearlib.core.pipeline import SmearPipeline
from smearlib.media import ffmpeg_probe
from smearlib.media.engine import MediaEngine

#============================================

AV_TOOLS = ("ffmpeg", "ffprobe")
MISSING_AV_TOOLS = [tool for tool in AV_TOOLS if shutil.which(tool) is None]
HAVE_AV_TOOLS = len(MISSING_AV_TOOLS) == 0
SKIP_AV_REASON = f"missing tools: {', '.join(MISSING_AV_TOOLS)}"

#============================================

def _run(cmd: list) -> None:
	proc = subprocess.run(cmd, capture_output=True, text=True)
	if proc.returncode != 0:
		raise RuntimeError(f"command failed: {cmd}\n{proc.stderr.strip()}")

#============================================

def _make_clip(path: str, seconds: float = 1.0, rate: int = 12) -> None:
	"""
	Generate a tiny synthetic clip with a known frame rate.
	"""
	_run([
		"ffmpeg", "-y", "-hide_banner", "-loglevel", "error",
		"-f", "lavfi", "-i", f"testsrc=size=64x48:rate={rate}",
		"-t", str(seconds),
		"-c:v", "libx264", "-preset", "ultrafast", "-pix_fmt", "yuv420p",
		path,
	])

#============================================

def _count_frames(path: str) -> int:
	payload = subprocess.check_output([
		"ffprobe", "-v", "error", "-count_frames", "-select_streams", "v:0",
		"-show_entries", "stream=nb_read_frames", "-of", "json", path,
	]).decode("utf-8")
	data = json.loads(payload)
	return int(data["streams"][0]["nb_read_frames"])

#============================================

@pytest.mark.skipif(not HAVE_AV_TOOLS, reason=SKIP_AV_REASON)
def test_probe_real_clip() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		clip = os.path.join(temp_dir, "clip.mp4")
		_make_clip(clip)
		metadata = ffmpeg_probe.probe(MediaEngine(), clip)
		assert metadata.fps == pytest.approx(12.0)
		assert metadata.frames == 12

#============================================

@pytest.mark.skipif(not HAVE_AV_TOOLS, reason=SKIP_AV_REASON)
def test_full_run_writes_both_smears() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		clip = os.path.join(temp_dir, "clip.mp4")
		_make_clip(clip)
		work_dir = os.path.join(temp_dir, "work")
		config = SmearConfig(input_file=clip, width=32, height=24, quiet=True,
			work_dir=work_dir)
		run = SmearPipeline(config)
		outputs = run.run()
		assert len(outputs) == 2
		for output in outputs:
			assert os.path.isfile(output)
			assert _count_frames(output) == 12
		assert run.store.is_complete('horizontal', 12)
		with PIL.Image.open(run.store.path('horizontal', 3)) as image:
			assert image.size == (32, 24)
		with PIL.Image.open(run.store.path('vertical', 3)) as image:
			assert image.size == (32, 24)
		assert os.path.isfile(os.path.join(temp_dir, "clip_summary.png"))

#============================================

@pytest.mark.skipif(not HAVE_AV_TOOLS, reason=SKIP_AV_REASON)
def test_skip_resize_and_cleanup() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		clip = os.path.join(temp_dir, "clip.mp4")
		_make_clip(clip, seconds=0.5)
		work_dir = os.path.join(temp_dir, "work")
		config = SmearConfig(input_file=clip, width=32, height=24, quiet=True,
			work_dir=work_dir, skip_resize=True, cleanup=True,
			output_mode='vertical', montage=False)
		run = SmearPipeline(config)
		outputs = run.run()
		assert run.working_video == clip
		assert outputs == [os.path.join(temp_dir, "clip_vertical-smear.mp4")]
		assert not os.path.exists(work_dir)
