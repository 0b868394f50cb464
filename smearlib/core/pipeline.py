#!/usr/bin/env python3

import os
import shutil
import tempfile
from smearlib.core import utils
from smearlib.core.frame_store import FrameStore
from smearlib.media import ffmpeg_probe
from smearlib.media import ffmpeg_resize
from smearlib.media.engine import MediaEngine
from smearlib.media.ffmpeg_extract import SliceExtractor
from smearlib.media.ffmpeg_render import Assembler
from smearlib import montage

#============================================

STATE_INIT = 'init'
STATE_RESIZED = 'resized'
STATE_SLICED = 'sliced'
STATE_ASSEMBLED = 'assembled'
STATE_CLEANED_UP = 'cleaned_up'
STATE_DONE = 'done'
STATE_FAILED = 'failed'

#============================================

class SmearPipeline():
	"""
	Runs resize, slice, assemble and cleanup in order for one source video.

	Each stage starts only after the previous one returned. A failure moves
	the run to STATE_FAILED; there is no resume, a new run starts over.
	"""
	def __init__(self, config, engine=None, cancel_event=None, progress=None):
		self.config = config
		if engine is None:
			engine = MediaEngine(loglevel=config.engine_loglevel,
				timeout=config.engine_timeout, verbose=config.verbose)
		self.engine = engine
		self.cancel_event = cancel_event
		self.progress = progress
		self.state = STATE_INIT
		self.history = [STATE_INIT]
		self.metadata = None
		self.work_dir = None
		self.frame_dir = None
		self.store = None
		self.working_video = None
		self.outputs = []
		self.summary_file = None
		self.cleaned_up = False
		self._created_dirs = []

	#============================
	def _advance(self, state: str) -> None:
		self.state = state
		self.history.append(state)

	#============================
	def _say(self, text: str) -> None:
		if not self.config.quiet:
			print(text)

	#============================
	def run(self) -> list:
		"""
		Run every stage and return the smear videos that were written.
		"""
		utils.ensure_input_exists(self.config.input_file)
		try:
			self._prepare_dirs()
			self._probe()
			self._resize()
			self._slice()
			self._assemble()
			self._summarize()
		except BaseException:
			# includes KeyboardInterrupt and OSError, always re-raised
			self._advance(STATE_FAILED)
			raise
		finally:
			self._cleanup()
		if self.cleaned_up:
			self._advance(STATE_CLEANED_UP)
		self._advance(STATE_DONE)
		return self.outputs

	#============================
	def _prepare_dirs(self) -> None:
		work_dir = self.config.work_dir
		if work_dir is None:
			work_dir = tempfile.mkdtemp(prefix="slitsmear-run-")
			self._created_dirs.append(work_dir)
		elif not os.path.isdir(work_dir):
			os.makedirs(work_dir)
			self._created_dirs.append(work_dir)
		frame_dir = self.config.frame_dir
		if frame_dir is None:
			frame_dir = work_dir
		elif not os.path.isdir(frame_dir):
			os.makedirs(frame_dir)
			self._created_dirs.append(frame_dir)
		self.work_dir = work_dir
		self.frame_dir = frame_dir
		self.store = FrameStore(frame_dir, image_ext=self.config.image_ext)

	#============================
	def _probe(self) -> None:
		self.metadata = ffmpeg_probe.probe(self.engine, self.config.input_file)
		note = ""
		if self.metadata.frame_count.is_estimated:
			note = ", frame count estimated"
		self._say(f"probe: {self.metadata.frames} frames at "
			f"{self.metadata.fps:.3f} fps ({self.metadata.duration_seconds:.2f} s{note})")

	#============================
	def _resize(self) -> None:
		self.working_video = ffmpeg_resize.resize(self.engine,
			self.config.input_file, self.work_dir, self.config)
		self._advance(STATE_RESIZED)

	#============================
	def _slice(self) -> None:
		geometry = (self.config.width, self.config.height)
		frame_size = geometry
		if self.working_video == self.config.input_file:
			frame_size = ffmpeg_probe.probe_dimensions(self.engine,
				self.working_video, geometry)
		extractor = SliceExtractor(self.engine, self.store, self.config,
			cancel_event=self.cancel_event, progress=self.progress)
		extractor.extract(self.working_video, self.metadata.frames, frame_size)
		self._advance(STATE_SLICED)

	#============================
	def _assemble(self) -> None:
		assembler = Assembler(self.engine, self.store, self.config)
		self.outputs = assembler.assemble(self.metadata.frames,
			self.metadata.fps, self.config.output_mode)
		if len(assembler.failures) > 0:
			failed = ", ".join(sorted(assembler.failures))
			raise utils.EngineError(f"assembly failed for {failed} smear")
		self._advance(STATE_ASSEMBLED)

	#============================
	def _summarize(self) -> None:
		if not self.config.montage:
			return
		self.summary_file = montage.summarize(self.store, self.metadata.frames,
			montage.summary_path(self.config.input_file),
			samples=self.config.montage_samples, quiet=self.config.quiet)

	#============================
	def _cleanup(self) -> None:
		if not self.config.cleanup:
			if self.work_dir is not None:
				self._say(f"working files kept in {self.work_dir}")
			return
		if self.store is None:
			return
		try:
			self.store.remove_artifacts()
			if self.working_video is not None \
				and self.working_video != self.config.input_file \
				and os.path.isfile(self.working_video):
				os.remove(self.working_video)
			for dirpath in (self.frame_dir, self.work_dir):
				self._remove_dir(dirpath)
		except OSError as exc:
			utils.warn(f"cleanup incomplete, working files left behind: {exc}")
			return
		self.cleaned_up = True
		self._say("cleanup complete")

	#============================
	def _remove_dir(self, dirpath: str) -> None:
		if not os.path.isdir(dirpath):
			return
		if dirpath in self._created_dirs:
			shutil.rmtree(dirpath)
			return
		# caller-supplied folder, only removed when nothing else is in it
		if len(os.listdir(dirpath)) == 0:
			os.rmdir(dirpath)
