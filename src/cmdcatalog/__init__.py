"""cmdcatalog - cached command discovery for plugin and script driven CLIs."""

__version__ = "0.1.0"
