"""Internationalization helpers for the setup command.

Provide translation strings for every user-facing message printed by the
setup pipeline and a small ``translate`` helper that selects the current
UI language. English is the reference catalogue; Swedish mirrors it.

Typical usage::

    from stackboot.setup.i18n import translate, set_language

"""

from __future__ import annotations

from stackboot.config import LANG as _DEFAULT_LANG

LANG: str = _DEFAULT_LANG
TEXTS: dict[str, dict[str, str]] = {
    "en": {
        "header_started": "🚀 Application Setup For {environment} Started",
        "invalid_environment": (
            "Invalid environment '{environment}'. "
            "Allowed values are: local, production."
        ),
        "step_progress": "Step {step}/{total}: {title}",
        "skipped_by_option": "  → Skipped by --skip-{flag} option.",
        "step_composer": "Installing Composer dependencies...",
        "step_npm": "Installing NPM dependencies & building assets...",
        "step_env": "Ensuring .env file exists...",
        "step_hooks": "Configuring Git hooks (Husky)...",
        "step_key": "Generating application key...",
        "step_migrate": "Running database migrations and seeders...",
        "step_db_engine": "Configuring database engine from DB_ENGINE (if set)...",
        "step_serve": "Starting local development server...",
        "composer_running": "Installing Composer dependencies...",
        "npm_running": "Installing NPM dependencies and building assets...",
        "label_composer": "Composer install",
        "label_npm": "NPM install & build",
        "label_hooks": "Git hooks configuration",
        "process_completed": "{label} completed.",
        "process_failed": "{label} failed.",
        "env_exists": ".env file already exists. Skipping copy from .env.example.",
        "env_example_missing": (
            ".env.example file not found. Please create your .env manually."
        ),
        "env_copy_failed": (
            "Failed to create .env file from .env.example. Please copy it manually."
        ),
        "env_created": (
            "Created .env file from .env.example. "
            "Please review and update configuration values."
        ),
        "hooks_running": "Configuring Git hooks path (.husky)...",
        "dispatch_running": "Running {command} ...",
        "dispatch_failed": "{command} failed (exit code {code}).",
        "migrate_confirm": (
            "⚠️ This will run database migrations and seeders. Continue?"
        ),
        "migrate_declined": "⚠️ Skipped migrations and seeders by user choice.",
        "db_engine_unset": (
            "DB_ENGINE not set in .env; leaving database engine at "
            "framework default (null)."
        ),
        "db_engine_set": (
            "Database engine set to [{engine}] for mysql and mariadb "
            "connections (from DB_ENGINE env)."
        ),
        "serve_skipped_production": "Skipping serve for production environment.",
        "serve_skipped": "Skipped: serve",
        "setup_completed": "✅ Application setup completed.",
        "setup_aborted": "Application setup aborted: {title}",
        "summary_title": "Setup summary",
        "summary_step": "Step",
        "summary_status": "Status",
        "summary_message": "Details",
        "status_ran": "✅ Done",
        "status_skipped": "⏭ Skipped",
        "status_declined": "⏸ Declined",
        "status_failed": "❌ Failed",
    },
    "sv": {
        "header_started": "🚀 Applikationsinstallation för {environment} startad",
        "invalid_environment": (
            "Ogiltig miljö '{environment}'. Tillåtna värden är: local, production."
        ),
        "step_progress": "Steg {step}/{total}: {title}",
        "skipped_by_option": "  → Hoppades över via flaggan --skip-{flag}.",
        "step_composer": "Installerar Composer-beroenden...",
        "step_npm": "Installerar NPM-beroenden och bygger resurser...",
        "step_env": "Säkerställer att .env-filen finns...",
        "step_hooks": "Konfigurerar Git-hooks (Husky)...",
        "step_key": "Genererar applikationsnyckel...",
        "step_migrate": "Kör databasmigreringar och seeders...",
        "step_db_engine": "Konfigurerar databasmotor från DB_ENGINE (om satt)...",
        "step_serve": "Startar lokal utvecklingsserver...",
        "composer_running": "Installerar Composer-beroenden...",
        "npm_running": "Installerar NPM-beroenden och bygger resurser...",
        "label_composer": "Composer-installation",
        "label_npm": "NPM-installation och bygge",
        "label_hooks": "Konfiguration av Git-hooks",
        "process_completed": "{label} klar.",
        "process_failed": "{label} misslyckades.",
        "env_exists": ".env finns redan. Kopierar inte från .env.example.",
        "env_example_missing": (
            ".env.example hittades inte. Skapa din .env manuellt."
        ),
        "env_copy_failed": (
            "Kunde inte skapa .env från .env.example. Kopiera den manuellt."
        ),
        "env_created": (
            "Skapade .env från .env.example. Granska och uppdatera värdena."
        ),
        "hooks_running": "Konfigurerar sökväg för Git-hooks (.husky)...",
        "dispatch_running": "Kör {command} ...",
        "dispatch_failed": "{command} misslyckades (returkod {code}).",
        "migrate_confirm": (
            "⚠️ Detta kör databasmigreringar och seeders. Fortsätta?"
        ),
        "migrate_declined": "⚠️ Migreringar och seeders hoppades över av användaren.",
        "db_engine_unset": (
            "DB_ENGINE är inte satt i .env; databasmotorn lämnas på "
            "ramverkets standard (null)."
        ),
        "db_engine_set": (
            "Databasmotor satt till [{engine}] för mysql- och "
            "mariadb-anslutningar (från DB_ENGINE)."
        ),
        "serve_skipped_production": "Hoppar över serve i produktionsmiljö.",
        "serve_skipped": "Hoppades över: serve",
        "setup_completed": "✅ Applikationsinstallationen är klar.",
        "setup_aborted": "Applikationsinstallationen avbröts: {title}",
        "summary_title": "Sammanfattning",
        "summary_step": "Steg",
        "summary_status": "Status",
        "summary_message": "Detaljer",
        "status_ran": "✅ Klart",
        "status_skipped": "⏭ Överhoppat",
        "status_declined": "⏸ Avböjt",
        "status_failed": "❌ Misslyckades",
    },
}


def translate(key: str, **params: object) -> str:
    r"""Translate a UI key to the current language.

    Looks the key up in the catalogue for ``LANG``, falling back to the
    English catalogue and finally to the key itself. Keyword arguments are
    substituted with ``str.format``.

    Parameters
    ----------
    key : str
        Catalogue key.
    **params : object
        Values substituted into the message.

    Returns
    -------
    str
        The translated, formatted message.

    Examples
    --------
    >>> translate("process_completed", label="Composer install")
    'Composer install completed.'
    >>> translate("UNKNOWN_KEY")
    'UNKNOWN_KEY'
    """
    text = TEXTS.get(LANG, {}).get(key) or TEXTS["en"].get(key, key)
    if params:
        return text.format(**params)
    return text


_ = translate


def set_language(lang: str) -> str:
    """Select the UI language; unknown codes fall back to English."""
    global LANG
    LANG = lang if lang in TEXTS else "en"
    return LANG


__all__ = ["LANG", "TEXTS", "_", "set_language", "translate"]
