"""
Key material resolution.

Parses PKCS#12 and PEM bundles from the vault into ``KeyMaterial``.
"""

from .resolver import DEFAULT_SIGNING_ALGORITHM, KeyMaterialResolver, load_key_bundle

__all__ = ["DEFAULT_SIGNING_ALGORITHM", "KeyMaterialResolver", "load_key_bundle"]
