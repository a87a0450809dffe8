from .normalizer import ENVELOPE_KEY, format_json, normalize, to_envelope

__all__ = ["ENVELOPE_KEY", "format_json", "normalize", "to_envelope"]
