from argparse import ArgumentParser, Namespace
from os import environ
from pathlib import Path
from sys import exit
from typing import Sequence
from unittest import TestLoader, TestSuite
from unittest.runner import TextTestRunner
from unittest.signals import installHandler

_TESTS = Path(__file__).resolve().parent
_TOP_LV = _TESTS.parent


def _parse_args() -> Namespace:
    parser = ArgumentParser(prog="python3 -m tests")
    parser.add_argument("suites", nargs="*", metavar="lsp|server|shared")
    parser.add_argument("-k", "--keyword", action="append", default=[])
    parser.add_argument("-q", "--quiet", action="store_true", default=False)
    parser.add_argument("-f", "--fail", action="store_true", default=False)
    parser.add_argument("-d", "--debug", action="store_true", default=False)
    return parser.parse_args()


def _suite(suites: Sequence[str], keywords: Sequence[str]) -> TestSuite:
    loader = TestLoader()
    if keywords:
        loader.testNamePatterns = [f"*{kw}*" for kw in keywords]

    dirs = [_TESTS / s for s in suites] or [_TESTS]
    return TestSuite(
        loader.discover(str(d), top_level_dir=str(_TOP_LV), pattern="test_*.py")
        for d in dirs
    )


def main() -> int:
    args = _parse_args()
    if args.debug:
        environ["DDC_LSP_DEBUG"] = "1"

    suite = _suite(args.suites, keywords=args.keyword)
    runner = TextTestRunner(verbosity=1 if args.quiet else 2, failfast=args.fail)

    installHandler()
    r = runner.run(suite)
    return not r.wasSuccessful()


if __name__ == "__main__":
    exit(main())
