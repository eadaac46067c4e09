"""Central configuration for the image transformation engine.

All tunable parameters are defined here with descriptive names.
Deployment-specific values (asset paths) can be overridden per call by
constructing the engine with explicit watermark assets.
"""

# =============================================================================
# ENCODING
# =============================================================================

# JPEG quality used when the caller does not ask for one (0-100)
DEFAULT_QUALITY = 95

# Palette size for animation container output
GIF_NUM_COLORS = 256

# TIFF is written with deflate compression
TIFF_COMPRESSION = "tiff_adobe_deflate"

# =============================================================================
# WATERMARK
# =============================================================================

# Watermark variants, resolved relative to the process working directory
WATERMARK_PLAIN_PATH = "watermark.png"
WATERMARK_COLORED_PATH = "watermark_colored.png"

# Score above which the "colored" variant is stamped instead of the plain one.
# Calibrated against color.watermark_score, not against relative luminance.
WATERMARK_SCORE_THRESHOLD = 1.90

# Constant alpha (out of 255) applied to the whole watermark when blending
WATERMARK_OPACITY = 64

# =============================================================================
# DOMINANT COLOR
# =============================================================================

# Number of k-means clusters; the most populated one is the dominant color
DOMINANT_COLOR_CLUSTERS = 4

# Images are downsampled so their long edge is at most this many pixels
# before clustering (speed vs. fidelity)
DOMINANT_COLOR_SAMPLE_SIZE = 256

# k-means termination criteria
DOMINANT_COLOR_MAX_ITER = 20
DOMINANT_COLOR_EPSILON = 1.0
