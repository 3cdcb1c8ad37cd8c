"""
==============================================================================
Scanner Package - Local Capture
==============================================================================

Barcode capture with OpenCV and pyzbar.

Classes:
--------
- FrameDecoder: Frame/image barcode decoding
- OpenCVCaptureLayer: Local camera capture layer
- LiveScanner: Camera loop feeding a ScanController

==============================================================================
"""

from .core import FrameDecoder, LiveScanner, OpenCVCaptureLayer

__all__ = ["FrameDecoder", "LiveScanner", "OpenCVCaptureLayer"]
