import sys

from weather_collector.main import main

sys.exit(main())
