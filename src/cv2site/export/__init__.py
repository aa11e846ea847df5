"""Website export module for cv2site."""
from cv2site.export.site_bundle import (
    assemble_page,
    bundle_files,
    write_bundle,
)

__all__ = ["assemble_page", "bundle_files", "write_bundle"]
