#!/usr/bin/env python3

import os
import time
from smearlib.core import utils
from smearlib.media.engine import TranscodeRequest

#============================================

def working_video_path(work_dir: str, container: str) -> str:
	return os.path.join(work_dir, f"resized.{container}")

#============================================

def build_resize_request(source_file: str, work_dir: str, config) -> TranscodeRequest:
	return TranscodeRequest(
		input_file=source_file,
		output_file=working_video_path(work_dir, config.container),
		width=config.width,
		height=config.height,
		codec=config.codec,
		crf=config.crf,
		preset=config.preset,
		pixel_format=config.pixel_format,
	)

#============================================

def resize(engine, source_file: str, work_dir: str, config) -> str:
	"""
	Produce the working video for extraction.

	With skip_resize set the source itself is the working video and no
	copy is made. Otherwise the source is re-encoded at exactly
	config.width x config.height with a constant crf.

	Returns:
		str: Path of the working video.
	"""
	if config.skip_resize:
		return source_file
	t0 = time.time()
	request = build_resize_request(source_file, work_dir, config)
	result = engine.run(request)
	if not result.ok:
		raise utils.EngineError(f"resize failed: {result.message}")
	if not os.path.isfile(request.output_file):
		raise utils.EngineError(f"resize failed: {request.output_file} was not written")
	if not config.quiet:
		print(f"resize complete in {int(time.time() - t0)} seconds")
	return request.output_file
