"""
Error types raised by the map interaction core
"""


class MapToolError(Exception):
    """Base class for interaction and measurement errors"""
    pass


class UnknownProjection(MapToolError):
    """A transform referenced a CRS code that was never registered"""

    def __init__(self, code: str):
        super().__init__(f"Projection '{code}' is not registered")
        self.code = code


class ProjectionDefinitionError(MapToolError):
    """A CRS definition could not be parsed"""
    pass


class RegistryFrozen(MapToolError):
    """Registration attempted after the registry was frozen"""
    pass


class InvalidGeometry(MapToolError):
    """Geometry has fewer vertices than its type requires"""
    pass


class DrawStateError(MapToolError):
    """Draw session operation not valid in the current state"""
    pass


class EnvironmentDenied(MapToolError):
    """The host environment refused a request (e.g. fullscreen)"""
    pass


class ResourceNotFound(MapToolError):
    """Lookup of an unknown layer or feature id"""
    pass


class DuplicateLayerId(MapToolError):
    """Two layer descriptors share the same id"""
    pass
