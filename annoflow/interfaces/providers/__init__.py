from annoflow.interfaces.providers.activity_log import ActivityLogProvider
from annoflow.interfaces.providers.data_storage import DataStorageProvider

__all__ = ["ActivityLogProvider", "DataStorageProvider"]
