import sys

from devicecrypt.cli import main

sys.exit(main())
