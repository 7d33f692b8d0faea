import sys

from packnode_dev.main import main

sys.exit(main())
