#!/usr/bin/env python3

import os
import time
from smearlib.core import utils
from smearlib.media.engine import ComposeRequest

#============================================

OUTPUT_SUFFIXES = {
	'horizontal': "horizontal-smear",
	'vertical': "vertical-smear",
}

#============================================

def requested_kinds(output_mode: str) -> tuple:
	if output_mode == 'horizontal':
		return ('horizontal',)
	if output_mode == 'vertical':
		return ('vertical',)
	if output_mode == 'both':
		return ('horizontal', 'vertical')
	raise ValueError(f"unknown output mode: {output_mode}")

#============================================

def smear_output_path(input_file: str, kind: str, container: str) -> str:
	return utils.output_path_for(input_file, OUTPUT_SUFFIXES[kind], container)

#============================================

def build_compose_request(store, kind: str, output_file: str,
	frame_rate: float, frame_count: int, config) -> ComposeRequest:
	return ComposeRequest(
		image_pattern=store.pattern(kind),
		output_file=output_file,
		frame_rate=frame_rate,
		frame_count=frame_count,
		start_number=0,
		codec=config.codec,
		crf=config.crf,
		preset=config.preset,
		pixel_format=config.pixel_format,
	)

#============================================

class Assembler():
	def __init__(self, engine, store, config):
		self.engine = engine
		self.store = store
		self.config = config
		self.failures = {}

	#============================
	def assemble(self, frame_count: int, frame_rate: float,
		output_mode: str) -> list:
		"""
		Encode each requested strip family as a video, one frame per index.

		The streams are independent: a failure in one is recorded in
		self.failures and the next stream is still attempted.

		Returns:
			list: Output video paths that were written.
		"""
		self.failures = {}
		outputs = []
		for kind in requested_kinds(output_mode):
			output_file = smear_output_path(self.config.input_file, kind,
				self.config.container)
			try:
				self._compose(kind, output_file, frame_count, frame_rate)
			except utils.EngineError as exc:
				self.failures[kind] = str(exc)
				utils.warn(f"{kind} smear failed: {exc}")
				continue
			outputs.append(output_file)
		return outputs

	#============================
	def _compose(self, kind: str, output_file: str, frame_count: int,
		frame_rate: float) -> None:
		t0 = time.time()
		if frame_count <= 0:
			raise utils.EngineError("no frames to assemble")
		if not self.store.is_complete(kind, frame_count):
			missing = self.store.missing_indices(kind, frame_count)
			extra = len(self.store.indices(kind)) - (frame_count - len(missing))
			raise utils.EngineError(
				f"frame store is not contiguous for {kind} strips: "
				f"{len(missing)} missing, {extra} unexpected"
			)
		request = build_compose_request(self.store, kind, output_file,
			frame_rate, frame_count, self.config)
		result = self.engine.run(request)
		if not result.ok:
			raise utils.EngineError(result.message)
		if not os.path.isfile(output_file):
			raise utils.EngineError(f"{output_file} was not written")
		if not self.config.quiet:
			print(f"{kind} smear complete in {int(time.time() - t0)} seconds: {output_file}")
