#!/usr/bin/env python3

import dataclasses
import os
import yaml

#============================================

TOOL_CONFIG_HEADER_KEY = "slitsmear"
TOOL_CONFIG_HEADER_VALUE = 1

OUTPUT_MODES = ('horizontal', 'vertical', 'both')

#============================================

@dataclasses.dataclass(frozen=True)
class SmearConfig():
	input_file: str
	width: int = 640
	height: int = 360
	verbose: bool = False
	quiet: bool = False
	engine_loglevel: str = "error"
	engine_timeout: float | None = None
	cleanup: bool = False
	skip_resize: bool = False
	output_mode: str = 'both'
	work_dir: str | None = None
	frame_dir: str | None = None
	codec: str = "libx264"
	crf: int = 18
	preset: str = "ultrafast"
	pixel_format: str = "yuv420p"
	container: str = "mp4"
	image_ext: str = "png"
	workers: int = 1
	montage: bool = True
	montage_samples: int = 5

	#============================
	def __post_init__(self):
		if self.width <= 0 or self.height <= 0:
			raise RuntimeError("output width and height must be positive integers")
		if self.output_mode not in OUTPUT_MODES:
			raise RuntimeError(f"output mode must be one of {', '.join(OUTPUT_MODES)}")
		if self.workers < 1:
			raise RuntimeError("workers must be at least 1")
		if self.engine_timeout is not None and self.engine_timeout <= 0:
			raise RuntimeError("engine timeout must be positive")

#============================================

def output_mode_from_flags(horizontal_only: bool, vertical_only: bool) -> str:
	"""
	Both flags set is read the same as neither: produce both smears.
	"""
	if horizontal_only and not vertical_only:
		return 'horizontal'
	if vertical_only and not horizontal_only:
		return 'vertical'
	return 'both'

#============================================

def default_config_path(input_file: str) -> str:
	return f"{input_file}.slitsmear.config.yaml"

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default config.
	"""
	return {
		TOOL_CONFIG_HEADER_KEY: TOOL_CONFIG_HEADER_VALUE,
		"settings": {
			"geometry": {
				"width": 640,
				"height": 360,
			},
			"encode": {
				"codec": "libx264",
				"crf": 18,
				"preset": "ultrafast",
				"pixel_format": "yuv420p",
				"container": "mp4",
			},
			"frames": {
				"image_ext": "png",
			},
			"engine": {
				"loglevel": "error",
				"timeout": None,
			},
			"extract": {
				"workers": 1,
			},
			"montage": {
				"enabled": True,
				"samples": 5,
			},
		},
	}

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
	with open(config_path, "w", encoding="utf-8") as handle:
		yaml.safe_dump(config, handle, sort_keys=False)
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config mapping.
	"""
	with open(config_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise RuntimeError("config file must be a mapping")
	if data.get(TOOL_CONFIG_HEADER_KEY) != TOOL_CONFIG_HEADER_VALUE:
		raise RuntimeError(f"config file must set {TOOL_CONFIG_HEADER_KEY}: {TOOL_CONFIG_HEADER_VALUE}")
	return data

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise RuntimeError(f"{config_path}: {key_path} must be an integer")
	try:
		result = int(value)
	except (TypeError, ValueError) as exc:
		raise RuntimeError(f"{config_path}: {key_path} must be an integer") from exc
	if isinstance(value, float) and value != result:
		raise RuntimeError(f"{config_path}: {key_path} must be an integer")
	return result

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise RuntimeError(f"{config_path}: {key_path} must be a number")
	try:
		return float(value)
	except (TypeError, ValueError) as exc:
		raise RuntimeError(f"{config_path}: {key_path} must be a number") from exc

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if not isinstance(value, str) or value.strip() == "":
		raise RuntimeError(f"{config_path}: {key_path} must be a non-empty string")
	return value.strip()

#============================================

def coerce_bool(value, config_path: str, key_path: str) -> bool:
	if isinstance(value, bool):
		return value
	raise RuntimeError(f"{config_path}: {key_path} must be true or false")

#============================================

def _section(settings: dict, name: str, config_path: str) -> dict:
	section = settings.get(name, {})
	if section is None:
		return {}
	if not isinstance(section, dict):
		raise RuntimeError(f"{config_path}: settings.{name} must be a mapping")
	return section

#============================================

def build_settings(config: dict, config_path: str) -> dict:
	"""
	Merge a loaded config over the defaults and coerce every value.

	Args:
		config: Parsed config mapping.
		config_path: Path used in error messages.

	Returns:
		dict: Flat mapping of SmearConfig field names to values.
	"""
	defaults = default_config()["settings"]
	settings = config.get("settings", {})
	if not isinstance(settings, dict):
		raise RuntimeError(f"{config_path}: settings must be a mapping")
	merged = {}
	for name, default_section in defaults.items():
		section = dict(default_section)
		section.update(_section(settings, name, config_path))
		merged[name] = section
	timeout = merged["engine"].get("timeout")
	if timeout is not None:
		timeout = coerce_float(timeout, config_path, "settings.engine.timeout")
	return {
		'width': coerce_int(merged["geometry"]["width"], config_path,
			"settings.geometry.width"),
		'height': coerce_int(merged["geometry"]["height"], config_path,
			"settings.geometry.height"),
		'codec': coerce_str(merged["encode"]["codec"], config_path,
			"settings.encode.codec"),
		'crf': coerce_int(merged["encode"]["crf"], config_path,
			"settings.encode.crf"),
		'preset': coerce_str(merged["encode"]["preset"], config_path,
			"settings.encode.preset"),
		'pixel_format': coerce_str(merged["encode"]["pixel_format"], config_path,
			"settings.encode.pixel_format"),
		'container': coerce_str(merged["encode"]["container"], config_path,
			"settings.encode.container").lstrip("."),
		'image_ext': coerce_str(merged["frames"]["image_ext"], config_path,
			"settings.frames.image_ext").lstrip("."),
		'engine_loglevel': coerce_str(merged["engine"]["loglevel"], config_path,
			"settings.engine.loglevel"),
		'engine_timeout': timeout,
		'workers': coerce_int(merged["extract"]["workers"], config_path,
			"settings.extract.workers"),
		'montage': coerce_bool(merged["montage"]["enabled"], config_path,
			"settings.montage.enabled"),
		'montage_samples': coerce_int(merged["montage"]["samples"], config_path,
			"settings.montage.samples"),
	}

#============================================

def build_config(input_file: str, settings: dict | None = None,
	**overrides) -> SmearConfig:
	"""
	Build the run configuration. Overrides set to None are ignored so
	unset CLI flags fall through to the config file or the defaults.
	"""
	values = {}
	if settings is not None:
		values.update(settings)
	for key, value in overrides.items():
		if value is not None:
			values[key] = value
	return SmearConfig(input_file=input_file, **values)
