from .ad import *  # noqa: F401,F403
from .ad import __all__ as _ad_all
from .config import DirectoryConfig, SearchOptions, TlsOptions

__version__ = "1.0.0"

__all__ = [*_ad_all, "DirectoryConfig", "SearchOptions", "TlsOptions"]
