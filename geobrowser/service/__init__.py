"""Persistence collaborators for the shape store.

- ShapePersistence: async interface the store calls (create/update/delete/load)
- PersistenceError: raised by implementations for any failure
- RestShapeService: HTTP implementation backed by requests
"""

from geobrowser.service.persistence import PersistenceError, ShapePersistence
from geobrowser.service.rest_client import RestShapeService

__all__ = [
    "PersistenceError",
    "ShapePersistence",
    "RestShapeService",
]
