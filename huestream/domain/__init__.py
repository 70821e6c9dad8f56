from .stream import HueStreamClient, Stream, start

__all__ = ["HueStreamClient", "Stream", "start"]
