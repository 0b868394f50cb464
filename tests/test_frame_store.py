#!/usr/bin/env python3

"""
Unit tests for the frame store index handling.
"""

# Standard Library
import os
import random
import sys
import tempfile

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from smearlib.core.frame_store import FrameStore

#============================================

def _touch(path: str) -> None:
	with open(path, "wb") as handle:
		handle.write(b"")

#============================================

def test_filenames_follow_layout() -> None:
	store = FrameStore("/tmp/frames", image_ext=".png")
	assert store.filename('horizontal', 12) == "horz_frame12.png"
	assert store.filename('vertical', 0) == "vert_frame0.png"
	assert store.pattern('horizontal') == os.path.join("/tmp/frames", "horz_frame%d.png")
	with pytest.raises(ValueError):
		store.filename('diagonal', 1)
	with pytest.raises(ValueError):
		store.filename('horizontal', -1)

#============================================

def test_indices_are_numeric_not_lexical() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		store = FrameStore(temp_dir)
		order = list(range(11))
		random.Random(3).shuffle(order)
		for index in reversed(order):
			_touch(store.path('horizontal', index))
		lexical = sorted(os.listdir(temp_dir))
		assert lexical[:3] == ["horz_frame0.png", "horz_frame1.png", "horz_frame10.png"]
		assert store.indices('horizontal') == list(range(11))
		paths = store.ordered_paths('horizontal')
		assert os.path.basename(paths[2]) == "horz_frame2.png"
		assert os.path.basename(paths[-1]) == "horz_frame10.png"

#============================================

def test_kinds_and_foreign_files_are_kept_apart() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		store = FrameStore(temp_dir)
		for index in range(3):
			_touch(store.path('horizontal', index))
		_touch(store.path('vertical', 0))
		_touch(os.path.join(temp_dir, "resized.mp4"))
		_touch(os.path.join(temp_dir, "horz_frame4.jpg"))
		_touch(os.path.join(temp_dir, "horz_frameX.png"))
		assert store.count('horizontal') == 3
		assert store.count('vertical') == 1
		assert store.missing_indices('vertical', 3) == [1, 2]
		assert store.is_complete('horizontal', 3)
		assert not store.is_complete('horizontal', 4)
		assert not store.is_complete('horizontal', 2)

#============================================

def test_remove_artifacts_only_touches_strips() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		store = FrameStore(temp_dir)
		for index in range(4):
			_touch(store.path('horizontal', index))
			_touch(store.path('vertical', index))
		_touch(os.path.join(temp_dir, "notes.txt"))
		assert store.remove_artifacts() == 8
		assert os.listdir(temp_dir) == ["notes.txt"]

#============================================

def test_missing_directory_is_empty() -> None:
	store = FrameStore("/nonexistent/slitsmear/frames")
	assert store.indices('vertical') == []
	assert store.missing_indices('vertical', 2) == [0, 1]

#============================================

def test_remove_stale_keeps_current_range() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		store = FrameStore(temp_dir)
		for index in range(12):
			_touch(store.path('horizontal', index))
			_touch(store.path('vertical', index))
		_touch(os.path.join(temp_dir, "resized.mp4"))
		assert store.remove_stale(5) == 14
		assert store.indices('horizontal') == list(range(5))
		assert store.indices('vertical') == list(range(5))
		assert os.path.isfile(os.path.join(temp_dir, "resized.mp4"))

#============================================

def test_pattern_escapes_percent_in_folder() -> None:
	with tempfile.TemporaryDirectory() as temp_dir:
		frame_dir = os.path.join(temp_dir, "100%_clips")
		store = FrameStore(frame_dir)
		pattern = store.pattern('vertical')
		assert "100%%_clips" in pattern
		assert pattern % 7 == store.path('vertical', 7)
