"""
Expose the loaded configuration as ``config``.

Importing from this module will load environment variables and
populate a singleton ``Config`` instance. Example:

    from sql_access.config import config
    print(config.DATABASE_URL)
"""

from .env import config, Config  # noqa: F401
