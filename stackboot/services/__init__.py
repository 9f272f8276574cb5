"""Service helpers: mail dispatch, Discord exception alerts and error reporting."""
