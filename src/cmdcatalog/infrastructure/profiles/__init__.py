from cmdcatalog.infrastructure.profiles.profile_locator import FilesystemProfileLocator

__all__ = ["FilesystemProfileLocator"]
