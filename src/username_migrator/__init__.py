"""GitHub Username Migrator - rewrite GitHub owners in local git remotes."""

__version__ = "0.4.0"
