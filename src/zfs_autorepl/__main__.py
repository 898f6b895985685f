# pyright: standard

"""zfs-autorepl: zfs_autorepl/__main__.py.

Snapshot ZFS filesystems, expire old automatic snapshots per pool and
replicate filesystem hierarchies between pools of the same host.
"""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
