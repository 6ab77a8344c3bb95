from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    user: str
    password: str
    database: str
    port: int = 3306
    connect_timeout: int = 10

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(values["host"]),
            user=str(values["user"]),
            password=str(values.get("password") or ""),
            database=str(values["database"]),
            port=int(values.get("port") or 3306),
            connect_timeout=int(values.get("connect_timeout") or 10),
        )


class DatabaseConnection:
    """Connection factory for the MySQL read adapters.

    One short-lived connection per repository call; the deduction preview and
    the upgrade quote never write, so transactions are left uncommitted.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        # Reused per process; a different config (e.g. tests) replaces it.
        if cls._instance is None or cls._instance.config != config:
            cls._instance = cls(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self.config.host,
            port=self.config.port,
            user=self.config.user,
            password=self.config.password,
            database=self.config.database,
            connection_timeout=self.config.connect_timeout,
            autocommit=False,
        )
