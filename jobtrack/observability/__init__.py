"""Request tracing and security telemetry.

structlog for the diagnostic stream, Sentry as the external monitoring channel,
and plain injected services (logger, performance monitor, security logger)
bundled in a ``Telemetry`` object.
"""
