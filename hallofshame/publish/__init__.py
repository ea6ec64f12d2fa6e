"""
Publish path: the blob upload state machine and end-to-end publishing.
"""

from .protocol import BlobUploadProtocol
from .service import PublishReceipt, PublishService

__all__ = [
    "BlobUploadProtocol",
    "PublishService",
    "PublishReceipt",
]
