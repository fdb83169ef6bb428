"""
Command line entry point for the Tessel front end.

Parses one program (the built-in sample unless a source string is given)
and prints the canonical rendering of the result, or a fixed error line.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .parser import Parser, ParseError, render

logger = logging.getLogger(__name__)

SAMPLE_PROGRAM = (
    "laksjd (a: tru, b: a) -> (a, b) { "
    "kjsd {{{{}{pd{kdfj}kjd} }}}} {} {}"
)

FAILURE_MESSAGE = "Error: Not a function"

EXAMPLES = """
Examples:
    tessel                                   # Parse the built-in sample
    tessel "f (a: Int) -> (a) { 1 }"         # Parse a program given inline
    tessel --strict "f () -> () {} }"        # Reject trailing input
    tessel --verbose "f (a: Int"             # Show the full diagnostic
"""


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tessel",
        description="Parse a Tessel program and print its canonical form",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EXAMPLES,
    )
    parser.add_argument('source', nargs='?', default=SAMPLE_PROGRAM,
                        help='Program text (defaults to the built-in sample)')
    parser.add_argument('--strict', action='store_true',
                        help='Fail if input remains after the last declaration')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Print diagnostics and parser debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    parser = Parser(args.source, filename="<argv>")
    if args.strict:
        try:
            result_value, remainder = parser.parse(), ""
        except ParseError as error:
            return _report_failure(error, args.verbose)
    else:
        result = parser.run(parser.parse_program)
        if not result.ok:
            return _report_failure(result.error, args.verbose)
        result_value, remainder = result.value, result.remainder

    print(render(result_value))
    if remainder:
        print(f"-- unparsed: {remainder!r}")
    return 0


def _report_failure(error: ParseError, verbose: bool) -> int:
    print(FAILURE_MESSAGE)
    if verbose:
        print(str(error), file=sys.stderr, end="")
    logger.debug("failed with %s at %s", error.code, error.location)
    return 1


if __name__ == "__main__":
    sys.exit(main())
