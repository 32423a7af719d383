from .installer import PatchInstaller, classify_value, get_patch_record
from .targets import twisted_targets

__all__ = ["PatchInstaller", "classify_value", "get_patch_record", "twisted_targets"]
