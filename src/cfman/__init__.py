"""cfman: Cloudflare resource manager with a plugin/task dispatch core."""

__version__ = "0.1.0"
