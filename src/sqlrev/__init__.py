"""sqlrev - version control for database mutations."""

from sqlrev.core import VersionControl, classify, connect, synthesize
from sqlrev.models import MANUAL

try:
    from importlib.metadata import version
    __version__ = version("sqlrev")
except Exception:
    # Fallback if package metadata is not available
    __version__ = "0.1.0"

__all__ = ["VersionControl", "classify", "connect", "synthesize", "MANUAL"]
