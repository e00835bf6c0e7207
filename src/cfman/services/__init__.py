"""Service layer: operations for the HTTP/CLI layer, returning ServiceResult.

Services depend on the plugin core, domain, and infrastructure layers.
They must never import from commands or output.
"""
