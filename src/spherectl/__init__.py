"""spherectl - ordered deployment of the Ethersphere contracts."""

__version__ = "0.1.0"
