import sys

from mcp_boilerplate.cli import main

sys.exit(main())
