#!/usr/bin/env python3

import argparse
import os
import sys
from smearlib.core import config as smear_config
from smearlib.core import utils
from smearlib.core.pipeline import SmearPipeline
from smearlib.media.engine import MediaEngine

#============================================

def parse_args(argv: list | None = None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Slit-scan a video into horizontal and vertical smear videos")
	parser.add_argument('input_file',
		help='source video file')
	parser.add_argument('-v', '--verbose', dest='verbose', action='store_true',
		help='print every ffmpeg/ffprobe command')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='no progress bars or stage messages')
	parser.add_argument('-l', '--loglevel', dest='engine_loglevel',
		help='ffmpeg log level passed through as -loglevel')
	parser.add_argument('-c', '--cleanup', dest='cleanup', action='store_true',
		help='remove the working folder and frame images when done')
	parser.add_argument('-s', '--skip-resize', dest='skip_resize', action='store_true',
		help='slice the source directly instead of a resized copy')
	parser.add_argument('-H', '--horizontal-only', dest='horizontal_only',
		action='store_true', help='only write the horizontal smear')
	parser.add_argument('-V', '--vertical-only', dest='vertical_only',
		action='store_true', help='only write the vertical smear')
	parser.add_argument('-W', '--width', dest='width', type=int,
		help='output width in pixels (default 640)')
	parser.add_argument('-T', '--height', dest='height', type=int,
		help='output height in pixels (default 360)')
	parser.add_argument('-i', '--input-folder', dest='work_dir',
		help='folder for the resized working video (default: new temp folder)')
	parser.add_argument('-o', '--output-folder', dest='frame_dir',
		help='folder for the per-frame strip images (default: the input folder)')
	parser.add_argument('-j', '--workers', dest='workers', type=int,
		help='parallel frame extractions (default 1)')
	parser.add_argument('-t', '--timeout', dest='engine_timeout', type=float,
		help='seconds before a single ffmpeg call is killed')
	parser.add_argument('-C', '--config', dest='config_file',
		help='optional config yaml')
	parser.add_argument('--write-default-config', dest='write_default_config',
		action='store_true', help='write the default config beside the input and exit')
	parser.add_argument('--no-montage', dest='montage', action='store_false',
		help='do not write the summary montage image')
	parser.set_defaults(montage=None)
	args = parser.parse_args(argv)
	if args.width is not None and args.width <= 0:
		parser.error("--width must be a positive integer")
	if args.height is not None and args.height <= 0:
		parser.error("--height must be a positive integer")
	return args

#============================================

def build_run_config(args) -> smear_config.SmearConfig:
	settings = None
	if args.config_file is not None:
		data = smear_config.load_config(args.config_file)
		settings = smear_config.build_settings(data, args.config_file)
	output_mode = smear_config.output_mode_from_flags(args.horizontal_only,
		args.vertical_only)
	return smear_config.build_config(
		os.path.abspath(args.input_file),
		settings,
		width=args.width,
		height=args.height,
		verbose=args.verbose,
		quiet=args.quiet,
		engine_loglevel=args.engine_loglevel,
		engine_timeout=args.engine_timeout,
		cleanup=args.cleanup,
		skip_resize=args.skip_resize,
		output_mode=output_mode,
		work_dir=args.work_dir,
		frame_dir=args.frame_dir,
		workers=args.workers,
		montage=args.montage,
	)

#============================================

def main(argv: list | None = None) -> int:
	args = parse_args(argv)
	if args.write_default_config:
		config_path = smear_config.default_config_path(args.input_file)
		smear_config.write_config_file(config_path, smear_config.default_config())
		print(f"wrote {config_path}")
		return 0
	try:
		run_config = build_run_config(args)
		utils.ensure_input_exists(run_config.input_file)
		engine = MediaEngine(loglevel=run_config.engine_loglevel,
			timeout=run_config.engine_timeout, verbose=run_config.verbose)
		engine.check_tools()
		pipeline = SmearPipeline(run_config, engine=engine)
		outputs = pipeline.run()
	except KeyboardInterrupt:
		sys.stderr.write("cancelled\n")
		return 130
	except RuntimeError as exc:
		sys.stderr.write(f"error: {exc}\n")
		return 1
	for output_file in outputs:
		print(f"mpv {output_file}")
	return 0


if __name__ == '__main__':
	sys.exit(main())
