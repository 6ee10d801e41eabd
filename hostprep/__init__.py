"""
hostprep — host provisioning toolkit.

Installs the sing-box proxy as a systemd service and provisions
Zsh/Fish shell environments with Starship and zoxide.
"""

__version__ = "0.1.0"
