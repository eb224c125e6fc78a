#!/usr/bin/env python3
"""
gen_ffi.py - LuaJIT FFI binding generator entry point

Generates a LuaJIT ffi module and LuaCATS annotations for a C library.

Usage:
    python scripts/gen_ffi.py HEADER... [--config FILE] [--preset NAME]
                              [--module NAME] [--output DIR]
                              [-I DIR] [-D NAME[=VALUE]] [--strict] [-v]
"""

import argparse
import importlib
import logging
import os
import sys

# Get paths
script_dir = os.path.dirname(os.path.abspath(__file__))

# Add scripts directory to path
sys.path.insert(0, script_dir)

from ffi_gen import BindgenError, Config, Generator


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Generate LuaJIT FFI bindings')
    parser.add_argument('headers', nargs='*',
                        help='Entry-point headers (default: headers from the config)')
    parser.add_argument('--config', default=None,
                        help='JSON configuration file')
    parser.add_argument('--preset', default=None,
                        help='Library configuration from scripts/bindings (e.g. libc)')
    parser.add_argument('--module', default=None,
                        help='Lua module name')
    parser.add_argument('--output', default=None,
                        help='Output directory')
    parser.add_argument('-I', dest='include_dirs', action='append', default=[],
                        help='Add include directory')
    parser.add_argument('-D', dest='defines', action='append', default=[],
                        help='Define a preprocessor macro')
    parser.add_argument('--strict', action='store_true',
                        help='Fail when any declaration was skipped')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')
    return parser.parse_args(argv)


def load_config(args) -> Config:
    """Build the configuration from the config file, preset and command line"""
    config = Config.load(args.config) if args.config else Config()
    if args.preset:
        preset = importlib.import_module(f'bindings.{args.preset}')
        preset.configure(config)
    if args.headers:
        config.headers.entry_points = list(args.headers)
    if args.module:
        config.module = args.module
    if args.output:
        config.output = args.output
    config.compiler_opts += [f'-I{d}' for d in args.include_dirs]
    config.compiler_opts += [f'-D{d}' for d in args.defines]
    return config


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        config = load_config(args)
        result = Generator(config).generate()
    except BindgenError as e:
        print(f'error: {e}', file=sys.stderr)
        return 1

    if args.strict and result.diagnostics:
        print(f'error: {len(result.diagnostics)} diagnostics in strict mode', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
