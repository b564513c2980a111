"""Signature provider factory.

Provides get_signature_provider() / set_signature_provider() to swap
implementations, selected by the SIGNATURE_ADAPTER environment variable:
- fake (default) for development and testing
- docuseal for a DocuSeal compatible API
"""

import os

from rentals.config import get_settings
from rentals.signature.port import SignatureProvider

_current_provider: SignatureProvider | None = None


def get_signature_provider() -> SignatureProvider:
    """Return the current signature provider (singleton)."""
    global _current_provider
    if _current_provider is None:
        adapter = os.environ.get("SIGNATURE_ADAPTER", "fake")
        if adapter == "fake":
            from rentals.signature.fake_adapter import FakeSignatureProvider

            _current_provider = FakeSignatureProvider()
        elif adapter == "docuseal":
            from rentals.signature.docuseal_adapter import DocuSealProvider

            _current_provider = DocuSealProvider(
                base_url=os.environ.get("DOCUSEAL_BASE_URL", "https://api.docuseal.com"),
                api_key=os.environ.get("DOCUSEAL_API_KEY", ""),
                template_id=os.environ.get("DOCUSEAL_TEMPLATE_ID", ""),
                timeout=get_settings().external_timeout,
            )
        else:
            raise ValueError(f"Unknown signature adapter: {adapter}")
    return _current_provider


def set_signature_provider(provider: SignatureProvider) -> None:
    """Override the active signature provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_signature_provider() -> None:
    """Reset to the default provider."""
    global _current_provider
    _current_provider = None
