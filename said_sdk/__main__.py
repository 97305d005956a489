import sys

from said_sdk.cli.main import main

sys.exit(main())
