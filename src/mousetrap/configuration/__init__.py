"""
Configuration management for Mousetrap.

- **app_configuration.py**: YAML loader for global settings (ban reason,
  message purge window, audit log content limit, immune permissions and the
  location of the guard configuration file). Falls back to defaults on missing
  or malformed config files.
"""
