import os

from config.config import identity_config, mongo_config

SECRET_KEY = "test-secret"

MONGO_CONFIG = mongo_config(database=os.getenv("MONGODB_DB", "attendance_manager_test"))
IDENTITY_CONFIG = identity_config(secret_key="test-key")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
