from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional


class Kind(Enum):
    BOOL = auto()
    INT32 = auto()
    SINT32 = auto()
    SFIXED32 = auto()
    UINT32 = auto()
    FIXED32 = auto()
    INT64 = auto()
    SINT64 = auto()
    SFIXED64 = auto()
    UINT64 = auto()
    FIXED64 = auto()
    FLOAT = auto()
    DOUBLE = auto()
    STRING = auto()
    BYTES = auto()
    ENUM = auto()
    MESSAGE = auto()
    GROUP = auto()


class Cardinality(Enum):
    SINGULAR = auto()
    LIST = auto()
    MAP = auto()


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class GoIdent:
    """A Go identifier together with the import path that declares it."""

    go_name: str
    import_path: str = ""


@dataclass(frozen=True)
class ModelAnnotation:
    """The `<import path>;<TypeName>` reference a message binds to."""

    import_path: str
    type_name: str

    @property
    def go_ident(self) -> GoIdent:
        return GoIdent(self.type_name, self.import_path)

    @classmethod
    def parse(cls, value: str) -> Optional[ModelAnnotation]:
        if not value or ";" not in value:
            return None
        path, _, name = value.partition(";")
        return cls(import_path=path, type_name=name)


@dataclass
class EnumType:
    full_name: str
    go_ident: GoIdent


@dataclass
class Field:
    name: str
    go_name: str
    kind: Kind
    cardinality: Cardinality = Cardinality.SINGULAR
    has_presence: bool = False
    is_weak: bool = False
    in_oneof: bool = False
    message: Optional[Message] = None
    enum: Optional[EnumType] = None

    @property
    def is_list(self) -> bool:
        return self.cardinality == Cardinality.LIST

    @property
    def is_map(self) -> bool:
        return self.cardinality == Cardinality.MAP


@dataclass
class Message:
    name: str
    full_name: str
    go_ident: GoIdent
    fields: List[Field] = field(default_factory=list)
    model: Optional[ModelAnnotation] = None

    @property
    def go_name(self) -> str:
        return self.go_ident.go_name


@dataclass
class FileImport:
    path: str
    go_import_path: str
    is_weak: bool = False


@dataclass
class SchemaFile:
    """A proto source file as seen by the generator."""

    proto_path: str
    go_package_name: str
    go_import_path: str
    generated_filename_prefix: str
    messages: List[Message] = field(default_factory=list)
    imports: List[FileImport] = field(default_factory=list)
    has_timestamp: bool = False
    generate: bool = True

    @property
    def annotated_messages(self) -> List[Message]:
        return [m for m in self.messages if m.model is not None]


@dataclass
class Diagnostic:
    severity: Severity
    location: str
    message: str

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


# Model field name -> declared Go type, e.g. "Title" -> "string",
# "DeletedAt" -> "*time.Time".
ModelFieldMap = Dict[str, str]
