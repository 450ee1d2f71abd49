"""Package entry point for ``python -m deposition_formatter``.

RULES:
- ``--serve`` starts the HTTP API (same as the deposition-api script)
- Anything else falls through to the CLI
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from deposition_formatter.server.app import run_api
        run_api()
    else:
        from deposition_formatter.cli import main
        main()
