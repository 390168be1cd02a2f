"""RTM Deck - real-time monitoring dashboard.

DAOs pull data from monitoring APIs, widgets long poll it.
"""

PROJECT_NAME = "RTM Deck"
PACKAGE_NAME = "rtm_deck"
__version__ = "1.0.0"

__all__ = ["PROJECT_NAME", "PACKAGE_NAME", "__version__"]
