"""Road-relative coordinates and lane-change safety for highway planning."""

from loguru import logger

# Library code stays silent until an application enables it.
logger.disable(__name__)

__version__ = "0.1.0"
