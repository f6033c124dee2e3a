"""Config – harness settings and their loaders."""
