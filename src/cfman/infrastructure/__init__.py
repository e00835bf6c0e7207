"""Infrastructure layer: the cloud API capability consumed by plugins.

The HTTP transport itself lives outside this package; plugins depend only
on the :class:`~cfman.infrastructure.cloud.CloudApi` protocol.
"""
