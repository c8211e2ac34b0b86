"""
存储后端客户端
"""

from .asset_backend import AssetBackend, CloudinaryBackend, create_backend

__all__ = [
    'AssetBackend',
    'CloudinaryBackend',
    'create_backend'
]
