"""mnhost: provision and control masternode daemons for many users on one host."""

__version__ = "0.3.0"
