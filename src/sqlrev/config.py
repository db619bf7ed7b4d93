"""Configuration management for sqlrev projects."""

import os
from pathlib import Path
from typing import Dict, Optional
import toml
from pydantic import BaseModel, Field, ConfigDict

from sqlrev.core.executor import SQLiteExecutorPool
from sqlrev.infrastructure import STORAGE_BACKENDS, RepositoryStore, create_store
from sqlrev.models import Author


CONFIG_DIRNAME = ".sqlrev"

DEFAULT_STORAGE_PATHS = {
    "sqlite": "repositories.db",
    "json": "repositories",
}


class AuthorConfig(BaseModel):
    """Default author for commits made from this project."""

    name: str = Field(default="sqlrev", description="Author name")
    email: str = Field(default="", description="Author email")


class ConnectionConfig(BaseModel):
    """A target database tracked by the project."""

    database_path: str = Field(description="Path to the SQLite database file")


class ProjectConfig(BaseModel):
    """Configuration for a sqlrev project stored in .sqlrev/config.toml."""

    model_config = ConfigDict(
        extra="allow"
    )  # Allow additional fields for extensibility

    active_connection: str = Field(
        default="default", description="Connection used when none is given"
    )
    storage: str = Field(
        default="sqlite", description="Repository storage backend"
    )
    storage_path: Optional[str] = Field(
        default=None, description="Storage file or directory, relative to .sqlrev"
    )
    author: AuthorConfig = Field(default_factory=AuthorConfig)
    connections: Dict[str, ConnectionConfig] = Field(
        default_factory=dict, description="Tracked databases by connection id"
    )


class Config:
    """Manages sqlrev project configuration."""

    def __init__(self, project_dir: Optional[Path] = None):
        """Initialize config manager.

        Args:
            project_dir: Path to project directory. If None, uses SQLREV_PROJECT_DIR env var or current directory.
        """
        # Check environment variable first
        if project_dir is None:
            env_dir = os.environ.get("SQLREV_PROJECT_DIR")
            if env_dir:
                project_dir = Path(env_dir)

        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.config_dir = self.project_dir / CONFIG_DIRNAME
        self.config_path = self.config_dir / "config.toml"
        self._config: Optional[ProjectConfig] = None

    @property
    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()

    def load(self) -> ProjectConfig:
        """Load configuration from disk, with environment variable overrides."""
        if not self.exists:
            raise FileNotFoundError(f"Config file not found at {self.config_path}")

        with open(self.config_path, "r") as f:
            data = toml.load(f)

        # Apply environment variable overrides
        self._apply_env_overrides(data)

        self._config = ProjectConfig(**data)
        if self._config.storage not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend '{self._config.storage}' in {self.config_path}"
            )
        return self._config

    def _apply_env_overrides(self, data: Dict) -> None:
        """Apply environment variable overrides to configuration data."""
        if env_connection := os.environ.get("SQLREV_CONNECTION"):
            data["active_connection"] = env_connection

        if env_storage := os.environ.get("SQLREV_STORAGE"):
            data["storage"] = env_storage

        author = dict(data.get("author") or {})
        if env_name := os.environ.get("SQLREV_AUTHOR_NAME"):
            author["name"] = env_name
        if env_email := os.environ.get("SQLREV_AUTHOR_EMAIL"):
            author["email"] = env_email
        if author:
            data["author"] = author

    @property
    def config(self) -> ProjectConfig:
        """Loaded configuration (loads on first access)."""
        if self._config is None:
            return self.load()
        return self._config

    def save(self, config: Optional[ProjectConfig] = None) -> None:
        """Save configuration to disk.

        Args:
            config: Configuration to save. If None, saves current config.
        """
        if config:
            self._config = config

        if not self._config:
            raise ValueError("No configuration to save")

        # Ensure config directory exists
        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, "w") as f:
            toml.dump(self._config.model_dump(exclude_none=True), f)

    def init_project(
        self,
        connection_id: str = "default",
        database_path: Optional[str] = None,
        storage: str = "sqlite",
    ) -> ProjectConfig:
        """Initialize a new sqlrev project with default configuration.

        Args:
            connection_id: Id of the first tracked connection
            database_path: Database file for that connection
            storage: Repository storage backend

        Raises:
            FileExistsError: If the project is already initialized
        """
        if self.exists:
            raise FileExistsError(f"Project already initialized at {self.config_dir}")
        if storage not in STORAGE_BACKENDS:
            raise ValueError(f"Unknown storage backend '{storage}'")

        connections = {}
        if database_path:
            connections[connection_id] = ConnectionConfig(database_path=database_path)

        config = ProjectConfig(
            active_connection=connection_id,
            storage=storage,
            connections=connections,
        )
        self.save(config)
        return config

    def storage_location(self) -> Optional[Path]:
        """Absolute storage path for the configured backend."""
        config = self.config
        if config.storage == "memory":
            return None
        location = Path(config.storage_path or DEFAULT_STORAGE_PATHS[config.storage])
        if not location.is_absolute():
            location = self.config_dir / location
        return location

    def create_store(self) -> RepositoryStore:
        """Build the repository store configured for this project."""
        return create_store(self.config.storage, self.storage_location())

    def database_paths(self) -> Dict[str, Path]:
        """Database file per connection id, resolved against the project dir."""
        paths = {}
        for connection_id, connection in self.config.connections.items():
            path = Path(connection.database_path)
            paths[connection_id] = path if path.is_absolute() else self.project_dir / path
        return paths

    def executor_pool(self) -> SQLiteExecutorPool:
        """Executors for the configured connections."""
        return SQLiteExecutorPool(self.database_paths())

    def default_author(self) -> Author:
        author = self.config.author
        return Author(name=author.name, email=author.email)
