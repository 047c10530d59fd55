from clientpack.model.asset import AssetReference, infer_media_type
from clientpack.model.bundle import BundleOutput, Module, ModuleKind
from clientpack.model.diagnostic import Diagnostic, Severity

__all__ = [
    "AssetReference",
    "BundleOutput",
    "Diagnostic",
    "Module",
    "ModuleKind",
    "Severity",
    "infer_media_type",
]
