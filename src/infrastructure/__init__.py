"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: SQLite via aiosqlite, dotenv-based
settings. Depends on domain/ only (implements ports). Never imported by
application/.
"""
