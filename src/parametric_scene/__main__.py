"""Allow ``python -m parametric_scene`` to run the scenecheck CLI."""

import sys

from parametric_scene.cli import main

sys.exit(main())
