"""Domain layer: status enums, records, and domain errors.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, plugins, commands, or config.
"""
