"""
Entry point for EchoChat application.
This module provides a command-line interface to start either a server or client.
"""

import argparse
import sys

from EchoChat.config import config, parse_port


def parse(argv=None):
    # Initialize argument parser for command line interface
    parser = argparse.ArgumentParser(prog='EchoChat', description='EchoChat starter')
    subparsers = parser.add_subparsers(dest='command', required=True, help='Available commands')

    # Port arguments are plain strings: unparsable values fall back to the default
    server_parser = subparsers.add_parser('server', help='Startup SERVER')
    server_parser.add_argument('port', nargs='?', default=None,
                               help=f'SERVER port (default: {config.DEFAULT_PORT})')

    client_parser = subparsers.add_parser('client', help='Startup CLIENT')
    client_parser.add_argument('login_id', help='Login ID used for this session')
    client_parser.add_argument('host', nargs='?', default=config.DEFAULT_HOST,
                               help=f'SERVER address (default: {config.DEFAULT_HOST})')
    client_parser.add_argument('port', nargs='?', default=None,
                               help=f'SERVER port (default: {config.DEFAULT_PORT})')

    args = parser.parse_args(argv)
    args.port = parse_port(args.port, config.DEFAULT_PORT)
    return args


def main(argv=None) -> int:
    args = parse(argv)

    # Imported lazily so --help does not pull in the network stack
    if args.command == 'server':
        from EchoChat.start.server import server
        return server(port=args.port)
    if args.command == 'client':
        from EchoChat.start.client import client
        return client(args.login_id, host=args.host, port=args.port)
    raise Exception('Unknown command')


if __name__ == '__main__':
    sys.exit(main())
