"""Models package: exposes the process-wide DBStorage singleton as ``storage``."""
from channel_accounts.models.db_storage import DBStorage

storage = DBStorage()
