#!/usr/bin/env python3
"""
gen_csharp.py - C# binding generator entry point

Generates a C# P/Invoke file for the extern "C" functions of a Rust source file.

Usage:
    python scripts/gen_csharp.py SOURCE --entry NAME [--entry NAME ...] [-o OUTPUT]
"""

import argparse
import logging
import os
import re
import sys

# Add scripts directory to path
script_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, script_dir)

from csharp_bindgen import BindgenError, CharWidth, Configuration, build_all

logger = logging.getLogger('csharp_bindgen.cli')


def parse_override(text: str) -> tuple[str, str, str]:
    """Parse SRC=TARGET[:DIRECTIVE]"""
    source, sep, rest = text.partition('=')
    if not sep or not source.strip() or not rest.strip():
        raise argparse.ArgumentTypeError(f"expected SRC=TARGET[:DIRECTIVE], got '{text}'")
    # :: belongs to the target (global::Ns.Foo); a lone : starts the directive
    parts = re.split(r'(?<!:):(?!:)', rest, maxsplit=1)
    directive = parts[1].strip() if len(parts) > 1 else ''
    return source.strip(), parts[0].strip(), directive or None


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Generate C# bindings for a Rust FFI library')
    parser.add_argument('source', help='Rust source file')
    parser.add_argument('--entry', action='append', required=True,
                        help='Entry function name (repeatable)')
    parser.add_argument('--namespace', default=None,
                        help='Namespace wrapping the generated class')
    parser.add_argument('--type', dest='type_name', default='NativeMethods',
                        help='Name of the generated static class')
    parser.add_argument('--dll', default=None,
                        help='Native library name (defaults to the first entry name)')
    parser.add_argument('--csharp-version', type=int, default=9,
                        help='Target C# language version')
    parser.add_argument('--char-width', choices=['utf8', 'utf16'], default='utf16',
                        help='Native text encoding')
    parser.add_argument('--override', dest='overrides', action='append', default=[],
                        type=parse_override, metavar='SRC=TARGET[:DIRECTIVE]',
                        help='Map a Rust type spelling to a C# type (repeatable)')
    parser.add_argument('-o', '--output', default=None,
                        help='Output file (defaults to stdout)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def make_config(args: argparse.Namespace) -> Configuration:
    config = Configuration(
        csharp_version=args.csharp_version,
        namespace=args.namespace,
        type_name=args.type_name,
        dll_name=args.dll,
        char_width=CharWidth.UTF8 if args.char_width == 'utf8' else CharWidth.UTF16,
    )
    for source, target, directive in args.overrides:
        config.add_override(source, target, directive)
    return config


def main(argv=None) -> int:
    args = make_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(name)s: %(levelname)s: %(message)s')

    with open(args.source, encoding='utf-8') as f:
        source = f.read()

    try:
        output = build_all(source, args.entry, make_config(args))
    except BindgenError as e:
        print(f'error[{e.kind}]: {e.message}', file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, 'w', encoding='utf-8', newline='\n') as f:
            f.write(output)
        logger.info('wrote %s', args.output)
    else:
        sys.stdout.write(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
