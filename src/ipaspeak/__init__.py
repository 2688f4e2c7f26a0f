"""ipaspeak - speak IPA pronunciations through cloud and local TTS voices."""

__version__ = "0.1.0"
__all__ = ["pronounce"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "pronounce":
        from .api import pronounce

        return pronounce
    raise AttributeError(f"module 'ipaspeak' has no attribute {name!r}")
