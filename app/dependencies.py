"""
FastAPI dependency injection functions.
Provides common dependencies used across endpoints.
"""

from typing import Annotated

from fastapi import Depends

from app.config import Settings, get_settings
from app.services.storage_gateway import StorageGateway, get_storage_gateway


# Type aliases for cleaner endpoint signatures
Gateway = Annotated[StorageGateway, Depends(get_storage_gateway)]
AppSettings = Annotated[Settings, Depends(get_settings)]
