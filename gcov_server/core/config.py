"""Configuration management for gcov-server."""
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

import dotenv

from gcov_server.core.errors import ConfigurationError

dotenv.load_dotenv()

DEFAULT_BIND_ADDRESS = '0.0.0.0:1001'
MAX_LOG_FILES = 48


def require_env(key: str) -> str:
    """Fetch ``key`` from the environment, raising if it is absent."""
    value = os.getenv(key)
    if value is None:
        raise ConfigurationError(key)
    return value


@dataclass
class DatabaseConfig:
    """Postgres connection configuration."""
    password: str
    database: str
    host: str = field(default_factory=lambda: os.getenv('POSTGRES_HOST', 'db'))
    user: str = 'postgres'

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(host={self.host!r}, user={self.user!r}, "
            f"password='*****', database={self.database!r})"
        )

    @property
    def dsn(self) -> str:
        return f"postgres://{self.user}:{self.password}@{self.host}/{self.database}"

    @property
    def url(self) -> str:
        """SQLAlchemy URL for the async driver."""
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}/{self.database}"

    @classmethod
    def from_env(cls) -> 'DatabaseConfig':
        return cls(
            password=require_env('POSTGRES_PASSWORD'),
            database=require_env('POSTGRES_DB'),
        )


@dataclass
class ServerConfig:
    bind_address: str = field(
        default_factory=lambda: os.getenv(
            'BIND_ADDRESS', DEFAULT_BIND_ADDRESS,
        ),
    )
    reports_dir: Path = field(
        default_factory=lambda: Path(os.getenv('REPORTS_DIR', './reports')),
    )
    assets_dir: Path = field(
        default_factory=lambda: Path(os.getenv('ASSETS_DIR', './assets')),
    )
    spa_entry: str = 'index.html'

    @property
    def host(self) -> str:
        return self._split_bind_address()[0]

    @property
    def port(self) -> int:
        return self._split_bind_address()[1]

    @property
    def spa_entry_path(self) -> Path:
        return self.assets_dir / self.spa_entry

    def validate(self) -> None:
        self._split_bind_address()

    def _split_bind_address(self) -> tuple[str, int]:
        host, sep, port = self.bind_address.rpartition(':')
        if not sep or not port.isdigit():
            raise ConfigurationError(
                'BIND_ADDRESS', f"is not a valid host:port pair ({self.bind_address!r})",
            )
        return host.strip('[]') or '0.0.0.0', int(port)


@dataclass
class LogConfig:
    log_dir: Path = field(
        default_factory=lambda: Path(os.getenv('LOG_DIR', './logs')),
    )
    log_suffix: str = field(
        default_factory=lambda: os.getenv('LOG_SUFFIX', 'log'),
    )
    max_log_files: int = MAX_LOG_FILES

    @property
    def log_file(self) -> Path:
        return self.log_dir / f"gcov-server.{self.log_suffix}"


@dataclass
class AppConfig:
    database: DatabaseConfig
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def load(cls) -> 'AppConfig':
        """
        Read the whole configuration from the environment once.

        Raises:
            ConfigurationError: a required variable is missing or malformed.
        """
        config = cls(database=DatabaseConfig.from_env())
        config.server.validate()
        return config
