"""Version information for :mod:`sparql_client`."""

VERSION = "0.1.0"
