"""Clean up local Git branches that have been deleted on the remote.

Features:
- Fetch and prune remote-tracking branches
- Find local branches whose upstream is gone
- Delete them, or preview the deletion with a dry run
"""

__version__ = "0.1.0"
