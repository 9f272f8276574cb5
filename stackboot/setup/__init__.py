"""Setup command: CLI entrypoint, provisioning pipeline and console UI."""
