"""AssetFlow: asynchronous image, video and PDF processing for remote assets."""

__version__ = "0.1.0"
