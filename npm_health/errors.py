"""
Errors raised by the package health resolver

Each error carries the HTTP status and the short message shown to users.
The underlying cause is chained for logging but never exposed.
"""

from typing import Optional


class PackageHealthError(Exception):
    """Base class for failures that abort a health check"""
    status_code = 500
    message = "Failed to check package. Please try again."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(PackageHealthError):
    """The client supplied no usable package name"""
    status_code = 400
    message = "Package name is required"


class NotFoundError(PackageHealthError):
    """The registry has no package with this name"""
    status_code = 404

    def __init__(self, package_name: str):
        self.package_name = package_name
        super().__init__(f'Package "{package_name}" not found on npm')


class UpstreamError(PackageHealthError):
    """The registry was unreachable or answered with an error"""
    status_code = 500
