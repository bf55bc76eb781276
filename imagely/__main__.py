import sys

from imagely.cli import main

sys.exit(main())
