import sys

from trtdetect.main import main

sys.exit(main())
