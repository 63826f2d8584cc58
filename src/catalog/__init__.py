"""Product catalog service.

REST resource for products with inline preview image conversion to stored
image files.
"""

__version__ = "0.1.0"
