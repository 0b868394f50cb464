#!/usr/bin/env python3

###
#contact sheet of a few horizontal strips, a visual index of the run
###

import numpy
import PIL.Image
from smearlib.core import utils

#===============================
def sample_indices(frame_count: int, samples: int = 5) -> list:
	"""
	Indices spaced frame_count/samples apart, starting at index 1.
	"""
	if frame_count <= 0 or samples <= 0:
		return []
	step = frame_count / float(samples)
	picked = []
	for k in range(samples):
		index = 1 + int(k * step)
		if index >= frame_count:
			index = frame_count - 1
		if index not in picked:
			picked.append(index)
	return picked

#===============================
def summary_path(input_file: str) -> str:
	return utils.output_path_for(input_file, "summary", "png")

#===============================
def build_montage(store, frame_count: int, output_file: str, samples: int = 5) -> str:
	indices = sample_indices(frame_count, samples)
	if len(indices) == 0:
		raise RuntimeError("no frames to summarize")
	images = []
	for index in indices:
		with PIL.Image.open(store.path('horizontal', index)) as im:
			images.append(im.convert("RGB"))
	height = images[0].height
	arrays = []
	for im in images:
		if im.height != height:
			im = im.resize((im.width, height), resample=PIL.Image.NEAREST)
		arrays.append(numpy.asarray(im, dtype=numpy.uint8))
	sheet = numpy.concatenate(arrays, axis=1)
	PIL.Image.fromarray(sheet).save(output_file)
	return output_file

#===============================
def summarize(store, frame_count: int, output_file: str, samples: int = 5,
	quiet: bool = False) -> str | None:
	"""
	Best effort: problems are reported and None is returned, the smear
	videos never depend on this.
	"""
	try:
		build_montage(store, frame_count, output_file, samples)
	except (OSError, ValueError, RuntimeError) as exc:
		utils.warn(f"summary montage skipped: {exc}")
		return None
	if not quiet:
		print(f"summary montage: {output_file}")
	return output_file
