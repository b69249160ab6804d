"""Handler modules for CRD resources."""

# Handlers register themselves with kopf on import
from . import bucket  # noqa: F401
from . import provider  # noqa: F401
