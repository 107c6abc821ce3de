import sys

from .transpile import main

sys.exit(main())
