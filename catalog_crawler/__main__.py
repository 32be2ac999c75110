import sys

from catalog_crawler.main import main

sys.exit(main())
