import sys

from buildpp.cli import main

sys.exit(main())
