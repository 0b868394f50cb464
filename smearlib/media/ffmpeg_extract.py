#!/usr/bin/env python3

import collections
import concurrent.futures
import os
import time
from tqdm import tqdm
import PIL.Image
from smearlib.core import utils
from smearlib.media.engine import ExtractFrameRequest
from smearlib.media.engine import StripCrop

#============================================

def horizontal_strip(index: int, output_height: int, output_file: str) -> StripCrop:
	"""
	Full-width row at y=index, repeated down to output_height rows.
	"""
	return StripCrop(kind='horizontal', width="iw", height="1", x=0, y=index,
		tile_columns=1, tile_rows=output_height, output_file=output_file)

#============================================

def vertical_strip(index: int, output_width: int, output_file: str) -> StripCrop:
	"""
	Full-height column at x=index, repeated across to output_width columns.
	"""
	return StripCrop(kind='vertical', width="1", height="ih", x=index, y=0,
		tile_columns=output_width, tile_rows=1, output_file=output_file)

#============================================

def build_extract_request(working_video: str, store, index: int,
	width: int, height: int) -> ExtractFrameRequest:
	"""
	One engine request producing both strips for a frame index.

	Args:
		working_video: Video to decode.
		store: FrameStore that names the outputs.
		index: Zero-based frame index.
		width: Output width, the vertical strip repeat count.
		height: Output height, the horizontal strip repeat count.

	Returns:
		ExtractFrameRequest: Request with the row and column crops.
	"""
	crops = (
		horizontal_strip(index, height, store.path('horizontal', index)),
		vertical_strip(index, width, store.path('vertical', index)),
	)
	return ExtractFrameRequest(input_file=working_video, frame_index=index,
		crops=crops)

#============================================

def degenerate_strip_size(kind: str, frame_size: tuple, width: int,
	height: int) -> tuple:
	if kind == 'horizontal':
		return (frame_size[0], height)
	return (width, frame_size[1])

#============================================

class SliceExtractor():
	def __init__(self, engine, store, config, cancel_event=None, progress=None):
		self.engine = engine
		self.store = store
		self.config = config
		self.cancel_event = cancel_event
		self.progress = progress
		self.failures = {}
		self.degenerate = []

	#============================
	def extract(self, working_video: str, frame_count: int,
		frame_size: tuple | None = None):
		"""
		Write one horizontal and one vertical strip per frame index.

		Args:
			working_video: Resized copy or the source itself.
			frame_count: Number of indices to extract, 0..frame_count-1.
			frame_size: (width, height) of the working video, used for
				degenerate strips; defaults to the configured geometry.

		Returns:
			FrameStore: The populated store.
		"""
		t0 = time.time()
		if frame_size is None:
			frame_size = (self.config.width, self.config.height)
		self.failures = {}
		self.degenerate = []
		self.store.ensure_dir()
		stale = self.store.remove_stale(frame_count)
		if stale > 0 and not self.config.quiet:
			print(f"removed {stale} strips left from an earlier run")
		self._note_extent(frame_count, frame_size)
		progress_bar = None
		if not self.config.quiet and frame_count > 0:
			progress_bar = tqdm(total=frame_count, desc="extract", unit="frame")
		try:
			if self.config.workers > 1:
				self._extract_pooled(working_video, frame_count, frame_size,
					progress_bar)
			else:
				for index in range(frame_count):
					self._check_cancelled()
					outcome = self._extract_one(working_video, index, frame_size)
					self._record(outcome, frame_count, progress_bar)
		finally:
			if progress_bar is not None:
				progress_bar.close()
		if len(self.degenerate) > 0:
			utils.warn(f"{len(self.degenerate)} frame indices past the decodable "
				"frames were filled with blank strips")
		if len(self.failures) > 0:
			failed = sorted(self.failures)
			shown = ", ".join(str(index) for index in failed[:10])
			raise utils.EngineError(
				f"extraction failed for {len(failed)} of {frame_count} frames "
				f"(indices {shown}): {self.failures[failed[0]]}"
			)
		if not self.config.quiet:
			print(f"extracted {frame_count} frames in {int(time.time() - t0)} seconds")
		return self.store

	#============================
	def _extract_pooled(self, working_video: str, frame_count: int,
		frame_size: tuple, progress_bar) -> None:
		workers = self.config.workers
		pending = collections.deque()
		with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
			for index in range(frame_count):
				self._check_cancelled()
				pending.append(executor.submit(self._extract_one, working_video,
					index, frame_size))
				while len(pending) >= workers * 2:
					self._record(pending.popleft().result(), frame_count, progress_bar)
			while len(pending) > 0:
				self._record(pending.popleft().result(), frame_count, progress_bar)

	#============================
	def _extract_one(self, working_video: str, index: int,
		frame_size: tuple) -> tuple:
		request = build_extract_request(working_video, self.store, index,
			self.config.width, self.config.height)
		try:
			result = self.engine.run(request)
		except utils.EngineError as exc:
			return (index, str(exc), [])
		if not result.ok:
			return (index, result.message, [])
		# engine succeeded without output: index is past the last decodable frame
		filled = []
		for crop in request.crops:
			if os.path.isfile(crop.output_file):
				continue
			size = degenerate_strip_size(crop.kind, frame_size,
				self.config.width, self.config.height)
			PIL.Image.new("RGB", size, color=(0, 0, 0)).save(crop.output_file)
			filled.append(crop.kind)
		return (index, None, filled)

	#============================
	def _record(self, outcome: tuple, frame_count: int, progress_bar) -> None:
		(index, error, filled) = outcome
		if error is not None:
			self.failures[index] = error
		elif len(filled) > 0:
			self.degenerate.append(index)
		if progress_bar is not None:
			progress_bar.update(1)
		if self.progress is not None:
			self.progress(index, frame_count)

	#============================
	def _check_cancelled(self) -> None:
		if self.cancel_event is not None and self.cancel_event.is_set():
			raise utils.ExtractionCancelled("extraction cancelled")

	#============================
	def _note_extent(self, frame_count: int, frame_size: tuple) -> None:
		if self.config.quiet:
			return
		(width, height) = frame_size
		if frame_count > height:
			print(f"note: {frame_count} frames exceed the {height} px frame height, "
				"later horizontal strips repeat the bottom row")
		if frame_count > width:
			print(f"note: {frame_count} frames exceed the {width} px frame width, "
				"later vertical strips repeat the right column")
