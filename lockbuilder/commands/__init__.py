from .check import check
from .config import config
from .init import init
from .log import log
from .plan import plan
from .show import show
from .version import version

__all__ = ["check", "config", "init", "log", "plan", "show", "version"]
