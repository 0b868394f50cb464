#!/usr/bin/env python3

import os
import re

#============================================

STRIP_KINDS = ('horizontal', 'vertical')

STRIP_PREFIXES = {
	'horizontal': "horz_frame",
	'vertical': "vert_frame",
}

#============================================

class FrameStore():
	"""
	Directory of per-frame strip images keyed by integer frame index.

	File names are unpadded (horz_frame10.png), so order is always rebuilt
	from the parsed index and never from the directory listing, where
	horz_frame10 sorts before horz_frame2.
	"""
	def __init__(self, frame_dir: str, image_ext: str = "png"):
		self.frame_dir = frame_dir
		self.image_ext = image_ext.lstrip(".")
		self._patterns = {}
		for kind, prefix in STRIP_PREFIXES.items():
			self._patterns[kind] = re.compile(
				rf"^{re.escape(prefix)}(\d+)\.{re.escape(self.image_ext)}$"
			)

	#============================
	def ensure_dir(self) -> None:
		os.makedirs(self.frame_dir, exist_ok=True)

	#============================
	def _check_kind(self, kind: str) -> None:
		if kind not in STRIP_PREFIXES:
			raise ValueError(f"unknown strip kind: {kind}")

	#============================
	def filename(self, kind: str, index: int) -> str:
		"""
		Build the strip file name for one frame index.

		Args:
			kind: 'horizontal' or 'vertical'.
			index: Zero-based frame index.

		Returns:
			str: File name like horz_frame12.png.
		"""
		self._check_kind(kind)
		if index < 0:
			raise ValueError("frame index must be non-negative")
		return f"{STRIP_PREFIXES[kind]}{index}.{self.image_ext}"

	#============================
	def path(self, kind: str, index: int) -> str:
		return os.path.join(self.frame_dir, self.filename(kind, index))

	#============================
	def pattern(self, kind: str) -> str:
		"""
		Sequence pattern for the engine's image reader. The %d counter is
		numeric, so frame 10 follows frame 9.

		Args:
			kind: 'horizontal' or 'vertical'.

		Returns:
			str: Path pattern with any literal % in the folder doubled.
		"""
		self._check_kind(kind)
		folder = self.frame_dir.replace("%", "%%")
		return os.path.join(folder, f"{STRIP_PREFIXES[kind]}%d.{self.image_ext}")

	#============================
	def index_map(self, kind: str) -> dict:
		"""
		Map every stored frame index of one kind to its file path.

		Args:
			kind: 'horizontal' or 'vertical'.

		Returns:
			dict: Frame index to file path, empty when the folder is missing.
		"""
		self._check_kind(kind)
		mapping = {}
		if not os.path.isdir(self.frame_dir):
			return mapping
		regex = self._patterns[kind]
		for name in os.listdir(self.frame_dir):
			match = regex.match(name)
			if match is None:
				continue
			mapping[int(match.group(1))] = os.path.join(self.frame_dir, name)
		return mapping

	#============================
	def indices(self, kind: str) -> list:
		return sorted(self.index_map(kind))

	#============================
	def ordered_paths(self, kind: str) -> list:
		"""
		Strip paths of one kind in numeric frame order.

		Args:
			kind: 'horizontal' or 'vertical'.

		Returns:
			list: File paths sorted by parsed frame index.
		"""
		mapping = self.index_map(kind)
		return [mapping[index] for index in sorted(mapping)]

	#============================
	def count(self, kind: str) -> int:
		return len(self.index_map(kind))

	#============================
	def missing_indices(self, kind: str, frame_count: int) -> list:
		"""
		Indices in 0..frame_count-1 with no stored strip.

		Args:
			kind: 'horizontal' or 'vertical'.
			frame_count: Expected number of frames.

		Returns:
			list: Missing indices in ascending order.
		"""
		present = self.index_map(kind)
		return [index for index in range(frame_count) if index not in present]

	#============================
	def is_complete(self, kind: str, frame_count: int) -> bool:
		"""
		True when the store holds exactly indices 0..frame_count-1.
		"""
		return self.indices(kind) == list(range(frame_count))

	#============================
	def remove_stale(self, frame_count: int) -> int:
		"""
		Delete strips at indices past frame_count, left by an earlier run
		over a longer clip in the same folder.

		Args:
			frame_count: Number of frames in the current run.

		Returns:
			int: Number of files removed.
		"""
		removed = 0
		for kind in STRIP_KINDS:
			for index, filepath in self.index_map(kind).items():
				if index >= frame_count:
					os.remove(filepath)
					removed += 1
		return removed

	#============================
	def remove_artifacts(self) -> int:
		"""
		Delete every strip this store owns, leaving other files alone.

		Returns:
			int: Number of files removed.
		"""
		removed = 0
		for kind in STRIP_KINDS:
			for filepath in self.index_map(kind).values():
				os.remove(filepath)
				removed += 1
		return removed
