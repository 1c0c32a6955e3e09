"""AdBoost: Flutterwave payment webhook that provisions ad packages."""

__version__ = "0.1.0"
