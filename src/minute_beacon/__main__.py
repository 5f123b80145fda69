import sys

from minute_beacon.cli import main

sys.exit(main())
