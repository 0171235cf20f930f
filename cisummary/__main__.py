import sys

from cisummary.main import main

sys.exit(main())
