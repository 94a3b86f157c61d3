import sys

from hostreaper.cli import main

sys.exit(main())
