"""Custom exceptions for the asset processing pipeline."""


class AssetPipelineException(Exception):
    """Base exception for the asset processing pipeline."""
    pass


class MessageParseError(AssetPipelineException):
    """Exception raised when a queue message cannot be parsed into a job."""
    pass


class UnknownAssetKindError(AssetPipelineException):
    """Exception raised when the remote asset is not an image, video or PDF."""
    pass


class TransportError(AssetPipelineException):
    """Exception raised when a signed-URL GET or PUT fails."""
    pass


class ImageProcessingError(AssetPipelineException):
    """Exception raised when the image handler fails."""
    pass


class VideoProcessingError(AssetPipelineException):
    """Exception raised when ffmpeg fails to produce the output video."""
    pass


class PipelineError(AssetPipelineException):
    """Exception raised when a pipeline stage fails after the job was logged."""
    pass


class DownloadError(PipelineError):
    """Exception raised when the original asset cannot be downloaded."""
    pass


class ProcessingError(PipelineError):
    """Exception raised when the handler for the asset kind fails."""
    pass


class ReadBackError(PipelineError):
    """Exception raised when the processed file cannot be read back."""
    pass


class UploadError(PipelineError):
    """Exception raised when the existence check or final upload fails."""
    pass
