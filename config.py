# config.py
import os

# ======= Board topology =======
BOARD          = os.getenv("KN_BOARD", "rectangle").strip().lower()
RECT_WIDTH     = int(os.getenv("KN_RECT_WIDTH", "11"))
RECT_HEIGHT    = int(os.getenv("KN_RECT_HEIGHT", "5"))
PYRAMID_SIZE   = int(os.getenv("KN_PYRAMID_SIZE", "5"))

# ======= Text format =======
# Glyph written for empty cells; any non-letter is read back as empty.
FILLER         = os.getenv("KN_FILLER", ".")[:1] or "."

# ======= Search knobs =======
# Seeded pieces are kept fixed unless backtracking past them is allowed.
ALLOW_BACKTRACKING = int(os.getenv("KN_ALLOW_BACKTRACKING", "0")) != 0
MAX_SOLUTIONS      = int(os.getenv("KN_MAX_SOLUTIONS", "0"))      # 0 = unlimited
PROGRESS_EVERY     = int(os.getenv("KN_PROGRESS_EVERY", "20000"))  # nodes between progress writes

# ======= Partitioned runs =======
WORKERS            = int(os.getenv("KN_WORKERS", "1"))
PARTITION_SECONDS  = float(os.getenv("KN_PARTITION_SECONDS", "3600"))

# ======= Output names =======
SOLUTIONS_OUT = os.getenv("KN_SOLUTIONS_OUT", "solutions.txt")
LAYOUT_HTML   = os.getenv("KN_LAYOUT_HTML", "layout_view.html")
LOG_DIR       = os.getenv("KN_LOG_DIR", "logs")

class CFG:
    BOARD        = BOARD
    RECT_WIDTH   = RECT_WIDTH
    RECT_HEIGHT  = RECT_HEIGHT
    PYRAMID_SIZE = PYRAMID_SIZE

    FILLER = FILLER

    ALLOW_BACKTRACKING = ALLOW_BACKTRACKING
    MAX_SOLUTIONS      = MAX_SOLUTIONS
    PROGRESS_EVERY     = PROGRESS_EVERY

    WORKERS           = WORKERS
    PARTITION_SECONDS = PARTITION_SECONDS

    SOLUTIONS_OUT = SOLUTIONS_OUT
    LAYOUT_HTML   = LAYOUT_HTML
    LOG_DIR       = LOG_DIR

# legacy convenience
FILLER = CFG.FILLER

__all__ = ["CFG", "FILLER"]
