"""Send one request from the command line."""

import json
import logging
import sys
from argparse import ArgumentParser, Namespace
from collections.abc import Sequence
from dataclasses import fields
from logging import getLogger

from anyio import run as arun

from httpf.algorithm import pluck
from httpf.errors import HttpfError
from httpf.response import Response
from httpf.service import METHODS, HttpfService

logger = getLogger(__name__)


def _pair(separator: str):
    def parse(text: str) -> tuple[str, str]:
        name, found, value = text.partition(separator)
        if not found:
            raise ValueError(text)
        return name.strip(), value.strip()

    return parse


def parse_args(argv: Sequence[str] | None = None) -> Namespace:
    parser = ArgumentParser(
        prog="httpf",
        description="Send a request and print one field of the response.",
    )
    parser.add_argument(
        "method",
        type=str.upper,
        choices=sorted(METHODS),
    )
    parser.add_argument("url")
    parser.add_argument(
        "--json",
        type=json.loads,
        help="JSON document to send as the request body.",
    )
    parser.add_argument(
        "-H",
        "--header",
        dest="headers",
        action="append",
        type=_pair(":"),
        default=[],
    )
    parser.add_argument(
        "-p",
        "--param",
        dest="params",
        action="append",
        type=_pair("="),
        default=[],
    )
    parser.add_argument(
        "--retry",
        type=int,
        default=0,
        help="Number of retries after a failed attempt.",
    )
    parser.add_argument(
        "--pluck",
        default="body",
        choices=[field.name for field in fields(Response)],
        help="Response field to print (default: body).",
    )
    parser.add_argument(
        "--fallback",
        type=json.loads,
        help="JSON document printed instead of failing.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


async def run(args: Namespace) -> int:
    """Execute the request described by `args`."""

    options = {
        "headers": dict(args.headers),
        "params": dict(args.params),
    }
    if args.json is not None:
        options["json"] = args.json

    stream = HttpfService().request(args.method, args.url, **options)
    stream = stream.retry(args.retry).chain(pluck(args.pluck))
    if args.fallback is not None:
        fallback = args.fallback
        stream = stream.catch_error(lambda error: fallback)

    try:
        result = await stream.head()
    except HttpfError as error:
        logger.error(str(error))
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )
    return arun(run, args)


if __name__ == "__main__":
    sys.exit(main())
