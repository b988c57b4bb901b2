from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database


@dataclass
class MongoConfig:
    uri: str
    database: str
    timeout_ms: int = 5000


class DatabaseConnection:
    """Singleton-like MongoDB connection holder.

    Note: MongoClient keeps its own pool, so one client per process is enough.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: MongoConfig):
        self._config = config
        self._client: Optional[MongoClient] = None

    @classmethod
    def get_instance(cls, config: MongoConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def config(self) -> MongoConfig:
        return self._config

    def client(self) -> MongoClient:
        if self._client is None:
            self._client = MongoClient(
                self._config.uri,
                serverSelectionTimeoutMS=int(self._config.timeout_ms),
                tz_aware=False,
            )
        return self._client

    def database(self) -> Database:
        return self.client()[self._config.database]

    def ping(self) -> bool:
        self.client().admin.command("ping")
        return True
