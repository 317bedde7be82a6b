"""Entry point for ``python -m dummysite_operator``."""

import kopf

from . import main  # noqa: F401  registers the kopf handlers

kopf.run(standalone=True, clusterwide=True)
