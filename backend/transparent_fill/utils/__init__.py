from transparent_fill.utils.log import setup_logging

__all__ = ["setup_logging"]
