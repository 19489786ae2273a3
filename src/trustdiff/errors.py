"""
errors.py — trustdiff Error Taxonomy

Standardized error codes for store access, persistence and certificate
encoding failures. Merge outcomes are report values, not errors, and are
deliberately absent from this module.
"""

from typing import Optional

__all__ = [
    "TrustDiffError",
    "StoreAccessError",
    "StorePersistError",
    "EncodingError",
    "AliasListError",
]

class TrustDiffError(Exception):
    """Base class for all trustdiff errors."""
    def __init__(
        self,
        code: str,
        message: str,
        context: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.context = context

        full_msg = f"[{code}] {message}"
        if context:
            full_msg += f" Context: {context}"

        super().__init__(full_msg)

    @property
    def doc_url(self) -> str:
        """Link to the human-readable documentation for this error."""
        return f"https://trustdiff.readthedocs.io/errors/{self.code}"

# Store Errors (E0xx)
class StoreAccessError(TrustDiffError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("TRUSTDIFF_E001", "The certificate store could not be opened or decrypted.", context)

class StorePersistError(TrustDiffError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("TRUSTDIFF_E002", "The certificate store could not be written back to its medium.", context)

# Entry Errors (E1xx)
class EncodingError(TrustDiffError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("TRUSTDIFF_E100", "A certificate entry could not be decoded or encoded to DER bytes.", context)

# Input Errors (E2xx)
class AliasListError(TrustDiffError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("TRUSTDIFF_E200", "The alias list could not be read.", context)
