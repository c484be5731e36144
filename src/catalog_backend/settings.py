import os
import threading
from dotenv import load_dotenv

load_dotenv()

class CatalogSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE","development")
        self.DATABASE_URL = os.environ.get("DATABASE_URL","sqlite:///./catalog.db")
        # Result cache settings
        self.CACHE_BACKEND = os.environ.get("CACHE_BACKEND", "redis").lower()
        self.REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
        self.REDIS_PORT = int(os.environ.get("REDIS_PORT", "6379"))
        self.REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD", "")
        self.ENABLE_CACHE = os.environ.get("ENABLE_CACHE", "true").lower() in ["true", "1", "yes", "on"]
        self.CACHE_TTL_SECONDS = int(os.environ.get("CACHE_TTL_SECONDS", "120"))
        # Path to the YAML file holding the per-account access overrides
        self.ACCESS_POLICY_FILE = os.environ.get("ACCESS_POLICY_FILE", None)

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(CatalogSettings, cls).__new__(cls)
        return cls._instance

settings = CatalogSettings()
