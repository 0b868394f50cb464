#!/usr/bin/env python3

"""
Unit tests for turning typed engine requests into ffmpeg/ffprobe commands.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from smearlib.core.frame_store import FrameStore
from smearlib.media import engine
from smearlib.media.ffmpeg_extract import build_extract_request
from smearlib.media.ffmpeg_extract import horizontal_strip
from smearlib.media.ffmpeg_extract import vertical_strip

#============================================

def _option_value(cmd: list, flag: str) -> str:
	return cmd[cmd.index(flag) + 1]

#============================================

def test_probe_command_selects_stream_and_plain_output() -> None:
	request = engine.ProbeRequest("clip.mp4", "stream=r_frame_rate", stream="v:0")
	cmd = engine.build_command(request, "quiet")
	assert cmd[0] == "ffprobe"
	assert _option_value(cmd, "-v") == "quiet"
	assert _option_value(cmd, "-select_streams") == "v:0"
	assert _option_value(cmd, "-show_entries") == "stream=r_frame_rate"
	assert _option_value(cmd, "-of") == "default=nw=1:nk=1"
	assert cmd[-1] == "clip.mp4"

#============================================

def test_format_probe_has_no_stream_selection() -> None:
	cmd = engine.build_command(engine.ProbeRequest("clip.mp4", "format=duration"))
	assert "-select_streams" not in cmd

#============================================

def test_transcode_command_scales_to_geometry() -> None:
	request = engine.TranscodeRequest("in.mov", "work/resized.mp4", 640, 360, crf=20)
	cmd = engine.build_command(request, "warning")
	assert cmd[0] == "ffmpeg"
	assert _option_value(cmd, "-loglevel") == "warning"
	assert _option_value(cmd, "-filter:v") == "scale=640:360"
	assert _option_value(cmd, "-crf") == "20"
	assert "-an" in cmd
	assert cmd[-1] == "work/resized.mp4"

#============================================

def test_horizontal_strip_filter_crops_row_and_repeats_down() -> None:
	crop = horizontal_strip(42, 360, "h.png")
	assert crop.filter_text() == "crop=iw:1:0:42,scale=iw*1:ih*360:flags=neighbor"

#============================================

def test_vertical_strip_filter_crops_column_and_repeats_across() -> None:
	crop = vertical_strip(42, 640, "v.png")
	assert crop.filter_text() == "crop=1:ih:42:0,scale=iw*640:ih*1:flags=neighbor"

#============================================

def test_extract_request_selects_frame_by_number() -> None:
	store = FrameStore("frames")
	request = build_extract_request("resized.mp4", store, 7, 640, 360)
	graph = request.filter_graph()
	assert graph.startswith("[0:v]select=eq(n\\,7),split=2[c0][c1];")
	assert "[c0]crop=iw:1:0:7,scale=iw*1:ih*360:flags=neighbor[s0]" in graph
	assert "[c1]crop=1:ih:7:0,scale=iw*640:ih*1:flags=neighbor[s1]" in graph
	cmd = engine.build_command(request)
	assert cmd.count("-map") == 2
	assert cmd[-1] == os.path.join("frames", "vert_frame7.png")
	horz_at = cmd.index(os.path.join("frames", "horz_frame7.png"))
	assert cmd[horz_at - 6:horz_at] == ["-map", "[s0]", "-frames:v", "1", "-update", "1"]

#============================================

def test_single_crop_graph_has_no_split() -> None:
	request = engine.ExtractFrameRequest("in.mp4", 3,
		(horizontal_strip(3, 10, "h.png"),))
	assert request.filter_graph() == (
		"[0:v]select=eq(n\\,3),crop=iw:1:0:3,scale=iw*1:ih*10:flags=neighbor[s0]"
	)

#============================================

def test_extract_request_without_crops_is_rejected() -> None:
	request = engine.ExtractFrameRequest("in.mp4", 0, ())
	with pytest.raises(ValueError):
		request.filter_graph()

#============================================

def test_compose_command_reads_numeric_sequence() -> None:
	request = engine.ComposeRequest("frames/horz_frame%d.png", "out.mp4",
		frame_rate=24.0, frame_count=240)
	cmd = engine.build_command(request)
	assert _option_value(cmd, "-framerate") == "24.000000"
	assert _option_value(cmd, "-start_number") == "0"
	assert _option_value(cmd, "-i") == "frames/horz_frame%d.png"
	assert _option_value(cmd, "-frames:v") == "240"
	assert _option_value(cmd, "-r") == "24.000000"
	assert cmd[-1] == "out.mp4"

#============================================

def test_unknown_request_type_raises() -> None:
	with pytest.raises(TypeError):
		engine.build_command(object())
