#!/usr/bin/env python3

import dataclasses
import math
from smearlib.core import utils
from smearlib.media.engine import ProbeRequest

#============================================

DEFAULT_FRAME_RATE = 24.0
DEFAULT_DURATION = 0.0

#============================================

@dataclasses.dataclass(frozen=True)
class ProbedValue():
	value: float
	is_estimated: bool

#============================================

@dataclasses.dataclass(frozen=True)
class VideoMetadata():
	duration: ProbedValue
	frame_rate: ProbedValue
	frame_count: ProbedValue

	#============================
	@property
	def duration_seconds(self) -> float:
		return self.duration.value

	#============================
	@property
	def fps(self) -> float:
		return self.frame_rate.value

	#============================
	@property
	def frames(self) -> int:
		return int(self.frame_count.value)

#============================================

def estimate_frame_count(duration_seconds: float, frame_rate: float) -> int:
	"""
	Frame count when the container does not report one.
	"""
	if duration_seconds <= 0 or frame_rate <= 0:
		return 0
	return int(math.ceil(duration_seconds * frame_rate))

#============================================

def _probe_text(engine, request: ProbeRequest) -> str | None:
	try:
		result = engine.run(request)
	except utils.EngineError as exc:
		utils.warn(f"probe of {request.entry} failed: {exc}")
		return None
	if not result.ok:
		return None
	if result.value is None or result.value == "" or result.value == "N/A":
		return None
	return result.value

#============================================

def probe_duration(engine, input_file: str) -> ProbedValue:
	text = _probe_text(engine, ProbeRequest(input_file, "format=duration"))
	try:
		seconds = float(text)
	except (TypeError, ValueError):
		return ProbedValue(DEFAULT_DURATION, True)
	if math.isnan(seconds) or seconds < 0:
		return ProbedValue(DEFAULT_DURATION, True)
	return ProbedValue(seconds, False)

#============================================

def probe_frame_rate(engine, input_file: str) -> ProbedValue:
	for entry in ("stream=r_frame_rate", "stream=avg_frame_rate"):
		text = _probe_text(engine, ProbeRequest(input_file, entry, stream="v:0"))
		try:
			fps = utils.fps_fraction_to_float(text)
		except (TypeError, ValueError):
			continue
		if fps > 0 and not math.isnan(fps):
			return ProbedValue(fps, False)
	return ProbedValue(DEFAULT_FRAME_RATE, True)

#============================================

def probe_reported_frame_count(engine, input_file: str) -> int | None:
	text = _probe_text(engine, ProbeRequest(input_file, "stream=nb_frames",
		stream="v:0"))
	try:
		count = int(text)
	except (TypeError, ValueError):
		return None
	if count <= 0:
		return None
	return count

#============================================

def probe(engine, input_file: str) -> VideoMetadata:
	"""
	Probe duration, frame rate and frame count of a video.

	Never raises for an existing file: unreadable fields fall back to
	defaults (duration 0, 24 fps) and the frame count is estimated as
	ceil(duration * fps) when the stream does not report one.

	Args:
		engine: Object with run(request) -> EngineResult.
		input_file: Video path, checked to exist by the caller.

	Returns:
		VideoMetadata: Probed values with their estimation flags.
	"""
	duration = probe_duration(engine, input_file)
	frame_rate = probe_frame_rate(engine, input_file)
	reported = probe_reported_frame_count(engine, input_file)
	if reported is not None:
		frame_count = ProbedValue(reported, False)
	else:
		frame_count = ProbedValue(
			estimate_frame_count(duration.value, frame_rate.value), True)
	return VideoMetadata(duration, frame_rate, frame_count)

#============================================

def probe_dimensions(engine, input_file: str, fallback: tuple) -> tuple:
	"""
	Width and height of the first video stream, or the fallback.
	"""
	width_text = _probe_text(engine, ProbeRequest(input_file, "stream=width",
		stream="v:0"))
	height_text = _probe_text(engine, ProbeRequest(input_file, "stream=height",
		stream="v:0"))
	try:
		width = int(width_text)
		height = int(height_text)
	except (TypeError, ValueError):
		return fallback
	if width <= 0 or height <= 0:
		return fallback
	return (width, height)
