from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from protoc_gen_bima.generator.output import GENERATOR_NAME
from protoc_gen_bima.plugin import generate
from protoc_gen_bima.version import version_string

log = logging.getLogger(__name__)


def run(data: bytes) -> bytes:
    """Decode a CodeGeneratorRequest, generate, and encode the response."""
    request = plugin_pb2.CodeGeneratorRequest()
    try:
        request.ParseFromString(data)
    except DecodeError as e:
        log.error("malformed CodeGeneratorRequest: %s", e)
        response = plugin_pb2.CodeGeneratorResponse(error=f"malformed CodeGeneratorRequest: {e}")
        return response.SerializeToString()
    result = generate(request)
    return result.response.SerializeToString()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog=GENERATOR_NAME,
        description="protoc plugin generating Go model bindings and response constructors",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the plugin version and exit",
    )
    parser.add_argument(
        "--request",
        help="Read a serialized CodeGeneratorRequest from this file instead of stdin",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity of the diagnostics written to stderr",
    )

    args = parser.parse_args(argv)
    if args.version:
        print(f"{GENERATOR_NAME} {version_string()}")
        return 0

    # stdout carries the response; everything else goes to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, args.log_level),
        format=f"{GENERATOR_NAME}: %(levelname)s: %(message)s",
    )

    data = Path(args.request).read_bytes() if args.request else sys.stdin.buffer.read()
    sys.stdout.buffer.write(run(data))
    sys.stdout.buffer.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
