# dirmirror/logging/tags.py
"""
Log tags.

Prefixed to log messages so a mixed log can be filtered by subsystem:

    logger.info(f"{SCAN} Scanning '{root}'...")
"""

CLI = "[CLI]"
CONFIG = "[CONFIG]"
SCAN = "[SCAN]"
PROBE = "[PROBE]"
STORE = "[STORE]"
SNAPSHOT = "[SNAPSHOT]"
VERIFY = "[VERIFY]"

__all__ = ["CLI", "CONFIG", "SCAN", "PROBE", "STORE", "SNAPSHOT", "VERIFY"]
