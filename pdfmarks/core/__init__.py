"""Core domain: bookmark model, codecs, outline graph and editing history."""
