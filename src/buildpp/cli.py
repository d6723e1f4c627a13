"""
Command line front end.

    buildpp preprocess web/viewer.js build/viewer.js -D GENERIC -D VERSION=1.2
    buildpp css mozcentral web/viewer.css build/viewer.css
    buildpp build setup.yaml -D TESTING=false
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from buildpp import __version__
from buildpp.builder import build, merge
from buildpp.config import load_defines, load_setup
from buildpp.css import preprocess_css
from buildpp.errors import PreprocessorError
from buildpp.preprocessor import preprocess

log = logging.getLogger(__name__)


def parse_define(text: str) -> Tuple[str, Any]:
    """
    NAME -> (NAME, True); NAME=true/false -> bool; NAME=other -> string.
    """
    name, sep, value = text.partition("=")
    if not name:
        raise argparse.ArgumentTypeError(f"invalid define: {text!r}")
    if not sep:
        return name, True
    if value == "true":
        return name, True
    if value == "false":
        return name, False
    return name, value


def _cli_defines(args: argparse.Namespace) -> Dict[str, Any]:
    defines: Dict[str, Any] = {}
    if getattr(args, "defines_file", None):
        defines = load_defines(args.defines_file)
    return merge(defines, dict(args.define or []))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="buildpp", description="Build-time source preprocessor")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every build step")
    sub = parser.add_subparsers(dest="command", required=True)

    define_args = argparse.ArgumentParser(add_help=False)
    define_args.add_argument("-D", "--define", action="append", type=parse_define,
                             metavar="NAME[=VALUE]", help="define a name (repeatable)")

    p = sub.add_parser("preprocess", parents=[define_args], help="run the line preprocessor")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--defines", dest="defines_file", metavar="FILE",
                   help="YAML mapping of defines, overridden by -D")

    c = sub.add_parser("css", help="inline @imports and strip prefixed CSS")
    c.add_argument("mode")
    c.add_argument("source")
    c.add_argument("destination")

    b = sub.add_parser("build", parents=[define_args], help="run a YAML build setup")
    b.add_argument("setup")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "preprocess":
            preprocess(args.input, args.output, _cli_defines(args))
        elif args.command == "css":
            preprocess_css(args.mode, args.source, args.destination)
        elif args.command == "build":
            setup = load_setup(args.setup)
            setup.defines = merge(setup.defines, _cli_defines(args))
            build(setup)
    except PreprocessorError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    log.debug("%s finished", args.command)
    return 0


if __name__ == "__main__":
    sys.exit(main())
