import sys

from jltemplates.pipeline import main

sys.exit(main())
