import sys

from buildkite_generator.cli import main

sys.exit(main())
