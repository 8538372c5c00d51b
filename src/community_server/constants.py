"""Global constants for the community server.

Service names used to register and look up services in the container, kept
in one place so registrations and lookups cannot drift apart.
"""

from enum import StrEnum


class ServiceName(StrEnum):
    """Names of the services registered by the application bootstrap."""

    DATABASE = "database"
    HTTP_APP = "http.app"
    HTTP_SERVER = "http.server"
