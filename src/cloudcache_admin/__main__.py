"""Module entry point for python -m cloudcache_admin."""

import sys

from .cli import main


def run_main():
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("Program interrupted by user. Exiting...", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        # Known error types get a clean message, anything else a traceback
        if isinstance(e, (ValueError, FileNotFoundError, PermissionError, KeyError)):
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    run_main()
