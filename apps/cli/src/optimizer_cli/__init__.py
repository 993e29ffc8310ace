"""
Command line front end for batch image optimization. It:
1. Finds images in a file or directory
2. Converts them to the requested format
3. Prints per-image and total savings

Deployment:
    pip install image-optimizer
    image-optimizer optimize ./photos -q 80
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
