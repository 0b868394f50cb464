#!/usr/bin/env python3

"""
Typed requests for the external media engine (ffmpeg and ffprobe).

Every stage describes what it wants as a request object. build_command()
is the only place that turns a request into an argv list, and
MediaEngine.run() is the only place that executes one.
"""

import dataclasses
from smearlib.core import utils

#============================================

ENGINE_TOOLS = ("ffmpeg", "ffprobe")

#============================================

@dataclasses.dataclass(frozen=True)
class EngineResult():
	ok: bool
	value: str | None = None
	message: str = ""

#============================================

@dataclasses.dataclass(frozen=True)
class ProbeRequest():
	input_file: str
	entry: str
	stream: str | None = None
	operation = "probe"

#============================================

@dataclasses.dataclass(frozen=True)
class TranscodeRequest():
	input_file: str
	output_file: str
	width: int
	height: int
	codec: str = "libx264"
	crf: int = 18
	preset: str = "ultrafast"
	pixel_format: str = "yuv420p"
	operation = "transcode"

#============================================

@dataclasses.dataclass(frozen=True)
class StripCrop():
	"""
	One crop out of a selected frame, then tiled columns x rows times.
	Crop sizes may be ffmpeg expressions such as 'iw' or 'ih'.
	"""
	kind: str
	width: str
	height: str
	x: int
	y: int
	tile_columns: int
	tile_rows: int
	output_file: str

	#============================
	def filter_text(self) -> str:
		crop = f"crop={self.width}:{self.height}:{self.x}:{self.y}"
		# a single frame cannot feed the tile filter, repeat pixels instead
		tile = (f"scale=iw*{self.tile_columns}:ih*{self.tile_rows}"
			":flags=neighbor")
		return f"{crop},{tile}"

#============================================

@dataclasses.dataclass(frozen=True)
class ExtractFrameRequest():
	input_file: str
	frame_index: int
	crops: tuple
	operation = "extract-frame"

	#============================
	def filter_graph(self) -> str:
		if len(self.crops) == 0:
			raise ValueError("extract request needs at least one crop")
		select = f"select=eq(n\\,{self.frame_index})"
		if len(self.crops) == 1:
			return f"[0:v]{select},{self.crops[0].filter_text()}[s0]"
		labels = "".join(f"[c{i}]" for i in range(len(self.crops)))
		chains = [f"[0:v]{select},split={len(self.crops)}{labels}"]
		for i, crop in enumerate(self.crops):
			chains.append(f"[c{i}]{crop.filter_text()}[s{i}]")
		return ";".join(chains)

#============================================

@dataclasses.dataclass(frozen=True)
class ComposeRequest():
	image_pattern: str
	output_file: str
	frame_rate: float
	frame_count: int
	start_number: int = 0
	codec: str = "libx264"
	crf: int = 18
	preset: str = "ultrafast"
	pixel_format: str = "yuv420p"
	operation = "compose"

#============================================

def _ffmpeg_head(loglevel: str) -> list:
	return ["ffmpeg", "-y", "-hide_banner", "-nostdin", "-loglevel", loglevel]

#============================================

def build_command(request, loglevel: str = "error") -> list:
	"""
	Translate a typed request into an engine argv list.

	Args:
		request: One of the request dataclasses in this module.
		loglevel: Forwarded untouched to ffmpeg/ffprobe.

	Returns:
		list: Command list for subprocess.
	"""
	if isinstance(request, ProbeRequest):
		cmd = ["ffprobe", "-v", loglevel]
		if request.stream is not None:
			cmd += ["-select_streams", request.stream]
		cmd += ["-show_entries", request.entry, "-of", "default=nw=1:nk=1",
			request.input_file]
		return cmd
	if isinstance(request, TranscodeRequest):
		cmd = _ffmpeg_head(loglevel)
		cmd += ["-i", request.input_file]
		cmd += ["-sn", "-an", "-map_chapters", "-1", "-map_metadata", "-1"]
		cmd += ["-filter:v", f"scale={request.width}:{request.height}"]
		cmd += ["-codec:v", request.codec, "-crf", str(request.crf),
			"-preset", request.preset, "-pix_fmt", request.pixel_format]
		cmd += [request.output_file]
		return cmd
	if isinstance(request, ExtractFrameRequest):
		cmd = _ffmpeg_head(loglevel)
		cmd += ["-i", request.input_file]
		cmd += ["-filter_complex", request.filter_graph()]
		for i, crop in enumerate(request.crops):
			cmd += ["-map", f"[s{i}]", "-frames:v", "1", "-update", "1",
				crop.output_file]
		return cmd
	if isinstance(request, ComposeRequest):
		cmd = _ffmpeg_head(loglevel)
		cmd += ["-framerate", f"{request.frame_rate:.6f}",
			"-start_number", str(request.start_number),
			"-i", request.image_pattern]
		cmd += ["-frames:v", str(request.frame_count)]
		cmd += ["-filter:v", "pad=ceil(iw/2)*2:ceil(ih/2)*2"]
		cmd += ["-codec:v", request.codec, "-crf", str(request.crf),
			"-preset", request.preset, "-pix_fmt", request.pixel_format]
		cmd += ["-r", f"{request.frame_rate:.6f}"]
		cmd += [request.output_file]
		return cmd
	raise TypeError(f"unsupported engine request: {type(request).__name__}")

#============================================

class MediaEngine():
	def __init__(self, loglevel: str = "error", timeout: float | None = None,
		verbose: bool = False):
		self.loglevel = loglevel
		self.timeout = timeout
		self.verbose = verbose

	#============================
	def check_tools(self) -> None:
		for tool in ENGINE_TOOLS:
			utils.check_dependency(tool)

	#============================
	def run(self, request) -> EngineResult:
		cmd = build_command(request, self.loglevel)
		proc = utils.run_process(cmd, verbose=self.verbose, timeout=self.timeout)
		if proc.returncode != 0:
			stderr_text = (proc.stderr or "").strip()
			return EngineResult(ok=False,
				message=f"{request.operation} failed ({proc.returncode}): {stderr_text}")
		value = None
		if isinstance(request, ProbeRequest):
			lines = (proc.stdout or "").strip().splitlines()
			if len(lines) > 0:
				value = lines[0].strip()
		return EngineResult(ok=True, value=value)
