import sys

from helpscope.cli import main

sys.exit(main())
