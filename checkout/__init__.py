"""Mobile money checkout service backed by the pawaPay API."""

__version__ = "0.1.0"
