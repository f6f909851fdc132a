"""Command-line entry point for cloudcache-admin."""

import argparse
import logging
import sys
import traceback

from .config import VERSION, load_config
from .errors import ApiErrorResponse, CloudCacheAdminError
from .pipeline import run
from .utils import logging_main

USAGE_EPILOG = """\
target:   a PCC service instance (defaults to $CFPCC when set)
command:  use 'cloudcache-admin <target> commands' to see the supported commands
options:
  -j                 print the JSON response instead of a table
  -g=group1,group2   only show records belonging to these groups
  -u=<user> -p=<pw>  use these credentials instead of the service key
  -body '<json>'     request body for create/update commands
  -d @<file.json>    read the request body from a file
  -<param> <value>   any other parameter of the command

examples:
  cloudcache-admin my-cache list regions
  cloudcache-admin my-cache list regions -g=group1,group2
  cloudcache-admin my-cache create region -d @region.json
"""


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cloudcache-admin',
        usage='%(prog)s [--debug] <target> <command> [options]',
        description='Run commands against a PCC cluster through its management REST API',
        epilog=USAGE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Log debug messages to console'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {VERSION}'
    )
    parser.add_argument(
        'tokens',
        nargs=argparse.REMAINDER,
        help=argparse.SUPPRESS
    )
    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI application.

    Returns the process exit status: 0 on success, 1 on error, 130 when
    interrupted. Output is printed only on success, except that an error
    envelope returned by the API is printed before failing.
    """
    args = create_parser().parse_args(argv)
    logging_main(debug=args.debug)

    try:
        config = load_config()
        output = run(config, args.tokens)
    except KeyboardInterrupt:
        print("\nProgram interrupted by user. Exiting...", file=sys.stderr)
        return 130
    except ApiErrorResponse as e:
        logging.debug(f"{type(e).__name__}: {e}")
        if e.rendered is not None:
            print(e.rendered)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except CloudCacheAdminError as e:
        logging.debug(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        if args.debug:
            traceback.print_exc()
        return 1

    print(output)
    return 0
