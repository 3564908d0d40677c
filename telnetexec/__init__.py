"""telnetexec: execute commands on remote hosts through the Telnet protocol."""
# pylint: disable=wildcard-import,undefined-variable
from .errors import *           # noqa
from .diagnostics import *      # noqa
from .negotiation import *      # noqa
from .executor import *         # noqa
from .telnet import *           # noqa
from .accessories import get_version as __get_version

__all__ = (
    errors.__all__ +
    diagnostics.__all__ +
    negotiation.__all__ +
    executor.__all__ +
    telnet.__all__
)  # noqa

__license__ = 'ISC'
__version__ = __get_version()
