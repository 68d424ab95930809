import sys

from weather_exporter.cli import main

sys.exit(main())
