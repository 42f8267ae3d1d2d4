"""TranzAntions — email alerts for wallet transactions."""

__version__ = "0.1.0"
