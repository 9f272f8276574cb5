"""Global configuration constants for the project.

Defines paths, filenames and defaults used by the setup command and the
service helpers.
"""

from __future__ import annotations

from pathlib import Path

# Project directories
PACKAGE_ROOT: Path = Path(__file__).resolve().parent
PROJECT_ROOT: Path = PACKAGE_ROOT.parent
LOG_DIR: Path = PROJECT_ROOT / "logs"

# Environment files (relative to the application being set up)
ENV_FILENAME: str = ".env"
ENV_EXAMPLE_FILENAME: str = ".env.example"

# Default setup environment
DEFAULT_ENVIRONMENT: str = "local"

# Skip flags accepted by the setup command, in pipeline order
SKIP_FLAGS: tuple[str, ...] = (
    "composer",
    "npm",
    "env",
    "hooks",
    "key",
    "migrate",
    "db-engine",
    "serve",
)

# Shell commands run by the pipeline
COMPOSER_INSTALL_LOCAL: str = "composer install"
COMPOSER_INSTALL_PRODUCTION: str = "composer install --no-dev --optimize-autoloader"
COMPOSER_WINDOWS_FLAGS: str = (
    "--ignore-platform-req=ext-pcntl --ignore-platform-req=ext-posix"
)
NPM_BUILD_COMMAND: str = "npm install && npm run build"
GIT_HOOKS_COMMAND: str = "git config core.hooksPath .husky"
DEFAULT_ARTISAN_BINARY: str = "php artisan"

# Database engine override
DB_ENGINE_ENV_KEY: str = "DB_ENGINE"
DB_ENGINE_CONFIG_KEYS: tuple[str, ...] = (
    "database.connections.mysql.engine",
    "database.connections.mariadb.engine",
)

# Mail defaults
MAIL_QUEUE_NAME: str = "mail"
MAIL_QUEUE_JITTER_MIN_MS: int = 100
MAIL_QUEUE_JITTER_MAX_MS: int = 1000
MAIL_BCC_ENVIRONMENT: str = "prod"

# Exception alert webhook defaults
DISCORD_ALERT_ENVIRONMENTS: tuple[str, ...] = ("production", "prod")
DISCORD_EMBED_COLOR: int = 16711680
DISCORD_DEFAULT_USERNAME: str = "Stackboot Bot"
DISCORD_REQUEST_TIMEOUT: int = 10

# CLI defaults and logging
LOG_FILENAME_SETUP: str = "setup.log"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# UI defaults
LANG: str = "en"
