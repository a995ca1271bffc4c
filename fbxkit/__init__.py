"""Build FBX node trees and write them as FBX 7.x binary data."""

__version__ = "0.7.0"
__all__ = ["attributes", "errors", "footer", "tree", "writer"]