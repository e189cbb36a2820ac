import sys

from .soltx_cli import main

sys.exit(main())
