"""KYC decision service for the collateral loan platform."""

__version__ = "0.1.0"
