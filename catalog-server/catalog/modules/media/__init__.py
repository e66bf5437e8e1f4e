"""Upload admission, image reconciliation and orphan cleanup."""

from .models import UploadedFile
from .purger import BlobPurger, PurgeReport
from .reconciler import ImageReconciliation, reconcile
from .signatures import ImageType, classify, classify_file
from .staging import UploadStager
from .upload_gate import DeclaredTypeFilter, UploadGate

__all__ = [
    "BlobPurger",
    "DeclaredTypeFilter",
    "ImageReconciliation",
    "ImageType",
    "PurgeReport",
    "UploadGate",
    "UploadStager",
    "UploadedFile",
    "classify",
    "classify_file",
    "reconcile",
]
