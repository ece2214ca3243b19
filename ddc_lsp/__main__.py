from argparse import ArgumentParser, Namespace
from asyncio import run
from contextlib import nullcontext
from pathlib import PurePath
from sys import exit

from .client import init


def parse_args() -> Namespace:
    parser = ArgumentParser()

    sub_parsers = parser.add_subparsers(dest="command", required=True)

    with nullcontext(sub_parsers.add_parser("run")) as p:
        p.add_argument("--socket", required=True)

    return parser.parse_args()


args = parse_args()

if args.command == "run":
    run(init(PurePath(args.socket)))
    exit(0)
else:
    assert False
