import sys

from ambient_glow.app import main

sys.exit(main())
