"""Allow ``python -m coke`` to run the ``coco`` compiler driver."""

import sys

from coke.driver import main

sys.exit(main())
