"""ncreate -- create files, workspaces, and project scaffolds from templates or AI."""

__version__ = "0.1.0"
