#!/usr/bin/env python3

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from .bridge import S3Bridge
from .constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_REGION,
    ENV_LOG_LEVEL,
)
from .errors import S3BridgeError
from .models import ClientSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='s3bridge',
        description='Blocking S3 object operations against an S3-compatible backend',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  s3bridge create-bucket test-bucket
  s3bridge put test-bucket hello.txt --data Hi --content-type text/plain
  s3bridge exists test-bucket hello.txt
  s3bridge get test-bucket hello.txt --output hello.txt

Environment Variables:
  S3_ENDPOINT_URL, AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_SESSION_TOKEN,
  S3BRIDGE_LOG_LEVEL (a .env file in the working directory is loaded first)
        '''
    )

    parser.add_argument('--endpoint-url', help='S3 endpoint URL (default: $S3_ENDPOINT_URL)')
    parser.add_argument('--access-key', help='Access key id (default: $AWS_ACCESS_KEY_ID)')
    parser.add_argument('--secret-key', help='Secret access key (default: $AWS_SECRET_ACCESS_KEY)')
    parser.add_argument('--session-token', help='Session token (default: $AWS_SESSION_TOKEN)')
    parser.add_argument('--region', help=f'Region (default: {DEFAULT_REGION})')

    parser.add_argument(
        '--connect-timeout',
        type=float,
        default=DEFAULT_CONNECT_TIMEOUT,
        help=f'Connect timeout in seconds (default: {DEFAULT_CONNECT_TIMEOUT})'
    )
    parser.add_argument(
        '--read-timeout',
        type=float,
        default=DEFAULT_READ_TIMEOUT,
        help=f'Read timeout in seconds (default: {DEFAULT_READ_TIMEOUT})'
    )
    parser.add_argument(
        '--max-attempts',
        type=int,
        default=DEFAULT_MAX_ATTEMPTS,
        help=f'Total attempts per request made by the S3 client (default: {DEFAULT_MAX_ATTEMPTS})'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=os.getenv(ENV_LOG_LEVEL, 'INFO'),
        help='Logging level (default: INFO)'
    )

    commands = parser.add_subparsers(dest='command', required=True)

    exists = commands.add_parser('exists', help='Check whether an object exists')
    exists.add_argument('bucket')
    exists.add_argument('key')

    create = commands.add_parser('create-bucket', help='Create a bucket')
    create.add_argument('bucket')

    put = commands.add_parser('put', help='Upload an object and print its ETag')
    put.add_argument('bucket')
    put.add_argument('key')
    source = put.add_mutually_exclusive_group()
    source.add_argument('--file', help='Read the payload from this file')
    source.add_argument('--data', help='Use this text (UTF-8) as the payload')
    put.add_argument('--content-type', help='Content-Type to store with the object')

    get = commands.add_parser('get', help='Download an object')
    get.add_argument('bucket')
    get.add_argument('key')
    get.add_argument('--output', help='Write to this file instead of stdout')

    return parser


def _read_payload(args: argparse.Namespace) -> bytes:
    if args.data is not None:
        return args.data.encode('utf-8')
    if args.file is not None:
        with open(args.file, 'rb') as f:
            return f.read()
    return sys.stdin.buffer.read()


def run_command(bridge: S3Bridge, args: argparse.Namespace) -> None:
    overrides = {
        'endpoint_url': args.endpoint_url,
        'access_key': args.access_key,
        'secret_key': args.secret_key,
        'session_token': args.session_token,
        'region': args.region,
    }

    if args.command == 'exists':
        exists = bridge.object_exists(args.bucket, args.key, **overrides)
        print('true' if exists else 'false')
    elif args.command == 'create-bucket':
        created = bridge.create_bucket(args.bucket, **overrides)
        print('true' if created else 'false')
    elif args.command == 'put':
        etag = bridge.put_object(
            args.bucket, args.key, _read_payload(args),
            content_type=args.content_type, **overrides
        )
        print(etag)
    elif args.command == 'get':
        data = bridge.get_object(args.bucket, args.key, **overrides)
        if args.output:
            with open(args.output, 'wb') as f:
                f.write(data)
        else:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    settings = ClientSettings(
        connect_timeout=args.connect_timeout,
        read_timeout=args.read_timeout,
        max_attempts=args.max_attempts,
    )
    logger.debug(f"Running '{args.command}' with {settings}")

    with S3Bridge(settings=settings) as bridge:
        try:
            run_command(bridge, args)
        except S3BridgeError as e:
            print(f"error: {e.kind.value}: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
