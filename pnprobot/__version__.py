"""Definition file for various version numbers."""

import os

# Version number for pnprobot
_version_file = os.path.join(os.path.dirname(__file__), "version.txt")
with open(_version_file, "r", encoding="utf-8") as f:
  __version__ = f.read().strip()

# Version tag embedded in every frame exchanged with the ext server.
EXT_SERVER_PROTOCOL_VERSION = 1
