"""
Configuration management for the Movies Pipeline.

Loads configuration from environment variables and provides
a centralized Config dataclass for all settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .normalizer import GenreCorrections


@dataclass
class Config:
    """Centralized configuration from environment variables."""

    # Database
    database_url: str = ""
    db_driver: str = "mysql+aiomysql"
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""

    # Paths
    project_dir: Path = field(default_factory=Path.cwd)
    log_dir: Path = field(default_factory=lambda: Path.cwd() / "movies_pipeline" / "logs")

    # Ingestion settings
    max_file_size_mb: int = 50
    show_progress: bool = False
    extra_genre_corrections: Dict[str, str] = field(default_factory=dict)

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    # CORS settings
    allowed_origins: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from environment variables.

        Args:
            env_path: Optional path to .env file. If not provided,
                     looks for .env in the project root, then current directory.

        Returns:
            Config instance with loaded values.

        Raises:
            ValueError: If required environment variables are missing or malformed.
        """
        load_env_file(env_path)

        # Database config
        database_url = os.getenv("DATABASE_URL", "")
        db_driver = os.getenv("SQL_DRIVER", "mysql+aiomysql")
        db_host = os.getenv("SQL_HOST", "localhost")
        db_port = int(os.getenv("SQL_PORT", "3306"))
        db_user = os.getenv("SQL_USER", "")
        db_password = os.getenv("SQL_PASS", "")
        db_name = os.getenv("SQL_DB", "")

        if not database_url and (not db_user or not db_name):
            raise ValueError(
                "DATABASE_URL or both SQL_USER and SQL_DB environment variables are required"
            )

        project_dir = Path(os.getenv("PROJECT_DIR", Path.cwd()))

        # Ingestion settings
        max_file_size_mb = int(os.getenv("MAX_UPLOAD_MB", "50"))
        show_progress = os.getenv("SHOW_PROGRESS", "false").lower() == "true"
        extra_genre_corrections = parse_corrections(os.getenv("GENRE_CORRECTIONS", ""))

        # API settings
        api_host = os.getenv("API_HOST", "0.0.0.0")
        api_port = int(os.getenv("API_PORT", "8000"))
        api_debug = os.getenv("API_DEBUG", "false").lower() == "true"

        # CORS settings
        allowed_origins = parse_origins(os.getenv("ALLOWED_ORIGINS", ""))

        return cls(
            database_url=database_url,
            db_driver=db_driver,
            db_host=db_host,
            db_port=db_port,
            db_user=db_user,
            db_password=db_password,
            db_name=db_name,
            project_dir=project_dir,
            log_dir=project_dir / "movies_pipeline" / "logs",
            max_file_size_mb=max_file_size_mb,
            show_progress=show_progress,
            extra_genre_corrections=extra_genre_corrections,
            api_host=api_host,
            api_port=api_port,
            api_debug=api_debug,
            allowed_origins=allowed_origins,
        )

    def get_db_url(self) -> str:
        """Get SQLAlchemy async database URL."""
        if self.database_url:
            return self.database_url
        return (
            f"{self.db_driver}://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    def genre_corrections(self) -> GenreCorrections:
        """Build the genre correction table: built-in entries plus configured extras."""
        return GenreCorrections.with_defaults(self.extra_genre_corrections)


def load_env_file(env_path: Optional[str] = None) -> None:
    """Load a .env file: the given path, else the project root, else the current directory."""
    if env_path:
        load_dotenv(env_path)
        return
    root_env = Path(__file__).parent.parent / ".env"
    if root_env.exists():
        load_dotenv(root_env)
    else:
        load_dotenv()


def parse_origins(value: str) -> List[str]:
    """Split a comma-separated ALLOWED_ORIGINS value."""
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def parse_corrections(value: str) -> Dict[str, str]:
    """
    Parse a "Wrong=Right,Other=Fixed" string into a mapping.

    Raises:
        ValueError: If a pair is not of the form key=value.
    """
    corrections: Dict[str, str] = {}
    for pair in value.split(","):
        pair = pair.strip()
        if not pair:
            continue
        wrong, sep, right = pair.partition("=")
        if not sep or not wrong.strip() or not right.strip():
            raise ValueError(f"GENRE_CORRECTIONS entry must look like 'Wrong=Right': {pair!r}")
        corrections[wrong.strip()] = right.strip()
    return corrections
