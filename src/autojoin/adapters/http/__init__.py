from .requests_registry import RequestsRegistryClient, build_url

__all__ = ["RequestsRegistryClient", "build_url"]
