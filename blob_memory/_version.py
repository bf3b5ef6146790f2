#
# _version.py: blob_memory package version
#
# Copyright DeGirum Corporation 2025
# All rights reserved
#

__version__ = "0.1.0"
__version_info__ = tuple(int(v) for v in __version__.split("."))
