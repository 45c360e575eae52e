"""
locsync - keep translated JSON/YAML localization files in sync.

Only strings that changed since the last run are sent to a translation
provider; everything else comes from a content-addressed cache.
"""

__version__ = "0.1.0"
