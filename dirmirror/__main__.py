# dirmirror/__main__.py
import sys

from dirmirror.cli import main

sys.exit(main())
