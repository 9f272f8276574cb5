"""Stackboot package.

This module is the root of the ``stackboot`` Python package, a thin
operational layer for a PHP/Node web application checkout. It bundles a
one-shot setup command that provisions an application environment, an
email dispatch helper and an exception alert notifier for a Discord
webhook.

Package Structure
-----------------
- `setup/`:
    The setup command: CLI entrypoint, step pipeline and orchestrator,
    process runner, framework command dispatcher and console UI.
- `services/`:
    Mail dispatch, Discord exception alerts and error reporting.
- `config.py`: Configuration constants (paths, commands, defaults), as UPPER_SNAKE_CASE.
- `settings.py`: Environment loading and the in-memory runtime configuration.
- `exceptions.py`: Project-specific exception classes.

Examples
--------
Basic import pattern:

>>> import stackboot
>>> stackboot.__version__
'0.1.0'

"""

__version__ = "0.1.0"
