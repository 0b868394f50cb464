#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess
import sys

#============================================

class InputNotFoundError(RuntimeError):
	pass

#============================================

class EngineError(RuntimeError):
	pass

#============================================

class ExtractionCancelled(RuntimeError):
	pass

#============================================

def run_process(cmd: list, verbose: bool = False,
	timeout: float | None = None) -> subprocess.CompletedProcess:
	"""
	Run a subprocess command without a shell.

	Args:
		cmd: Command list to execute.
		verbose: Echo the command before running it.
		timeout: Seconds before the command is killed, None waits forever.

	Returns:
		subprocess.CompletedProcess: Completed process, never raises on
		a non-zero return code.
	"""
	showcmd = shlex.join(cmd)
	if verbose:
		print(f"CMD: '{showcmd}'")
	try:
		proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
	except subprocess.TimeoutExpired as exc:
		raise EngineError(f"command timed out after {timeout} seconds: {showcmd}") from exc
	except FileNotFoundError as exc:
		raise EngineError(f"missing dependency: {cmd[0]}") from exc
	return proc

#============================================

def check_dependency(cmd_name: str) -> None:
	"""
	Ensure a required external command exists.

	Args:
		cmd_name: Command to locate on PATH.
	"""
	if shutil.which(cmd_name) is None:
		raise EngineError(f"missing dependency: {cmd_name}")
	return

#============================================

def ensure_input_exists(filepath: str) -> None:
	"""
	Ensure the source video exists before any stage runs.

	Args:
		filepath: Input file path to verify.
	"""
	if not os.path.isfile(filepath):
		raise InputNotFoundError(f"file does not exist: {filepath}")
	return

#============================================

def fps_fraction_to_float(value: str) -> float:
	"""
	Convert an ffprobe frame-rate fraction string to float.

	Args:
		value: Fraction string like "30000/1001" or "30/1".

	Returns:
		float: FPS value.
	"""
	text = str(value).strip()
	if "/" in text:
		num_text, den_text = text.split("/", 1)
		num = float(num_text)
		den = float(den_text)
		if den == 0:
			raise ValueError("invalid fps denominator")
		return num / den
	return float(text)

#============================================

def output_path_for(input_file: str, suffix: str, extension: str) -> str:
	"""
	Build an output path beside the input, like clip_horizontal-smear.mp4.

	Args:
		input_file: Source video path.
		suffix: Name suffix appended to the input stem.
		extension: File extension without the dot.

	Returns:
		str: Output file path.
	"""
	stem = os.path.splitext(input_file)[0]
	return f"{stem}_{suffix}.{extension}"

#============================================

def warn(message: str) -> None:
	"""
	Write a warning line to stderr.
	"""
	sys.stderr.write(f"warning: {message}\n")
	return
