"""Runtime support for decoding FIT message records."""

from .catalog import BASE_TYPES as BASE_TYPES
from .catalog import CATALOG as CATALOG
from .catalog import TypeCatalog as TypeCatalog
from .catalog import TypeDef as TypeDef
from .decoder import MessageDecoder as MessageDecoder
from .decoder import decode_message as decode_message
from .definition import FieldDefinition as FieldDefinition
from .definition import MessageDefinition as MessageDefinition
from .entity import EntityContext as EntityContext
from .entity import RecordCollector as RecordCollector
from .errors import *
from .plan import DecodePlan as DecodePlan
from .record import DecodedRecord as DecodedRecord
from .record import DiagnosticEntry as DiagnosticEntry
from .record import DumpFilter as DumpFilter
from .types import *
