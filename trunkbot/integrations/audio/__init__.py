from .enhancer import AudioEnhancer

__all__ = ["AudioEnhancer"]
