import sys

from crawlmcp.main import main

sys.exit(main())
