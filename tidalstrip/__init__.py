from .profile import *
from .structure import *
from .tree import *
from .tidal import *
from .events import *
from .cache import *
from .radius import *
from .catalog import *
