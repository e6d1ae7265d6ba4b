"""HTTP status constructors for response envelope messages.

A response envelope is a `*Response` message with `code`, `data` and
`message` fields. Two sets of constructors are generated:

- methods on the payload message, when some response in the same file has
  a singular `data` field of that type (`todo.CreateTodoResponseStatusOK()`)
- free functions on every response with a message-typed `data` field
  (`CreateTodoResponseStatusOK(todo)`)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from protoc_gen_bima.classifier import MessageKind
from protoc_gen_bima.generator.output import GeneratedFile, get_template_env
from protoc_gen_bima.models import Field, GoIdent, Message

HTTP_IMPORT = "net/http"
DATA_FIELD = "data"

SUCCESS_STATUSES = ("StatusOK", "StatusCreated", "StatusNoContent")
FAILURE_STATUSES = ("StatusBadRequest", "StatusNotFound")
NO_BODY_STATUSES = {"StatusNoContent"}


@dataclass
class Constructor:
    name: str
    response: str
    params: str = ""
    receiver: Optional[str] = None
    fields: List[str] = field(default_factory=list)


def _literal_fields(pairs: List[Tuple[str, str]]) -> List[str]:
    """Key/value lines of a composite literal, aligned the way gofmt does."""
    width = max(len(key) for key, _ in pairs) + 1
    return [f"{(key + ':').ljust(width)} {value}," for key, value in pairs]


def _constructors(
    out: GeneratedFile,
    response: Message,
    data: str,
    success_params: str,
    failure_params: str,
    receiver: Optional[str] = None,
    with_error_message: bool = True,
) -> List[Constructor]:
    response_type = out.qualified(response.go_ident)
    result: List[Constructor] = []

    for status in SUCCESS_STATUSES:
        pairs = [("Code", out.qualified(GoIdent(status, HTTP_IMPORT)))]
        if status not in NO_BODY_STATUSES:
            pairs.append(("Data", data))
        result.append(Constructor(
            name=f"{response.go_name}{status}",
            response=response_type,
            params=success_params,
            receiver=receiver,
            fields=_literal_fields(pairs),
        ))

    for status in FAILURE_STATUSES:
        pairs = [("Code", out.qualified(GoIdent(status, HTTP_IMPORT))), ("Data", data)]
        if with_error_message:
            pairs.append(("Message", "err.Error()"))
        result.append(Constructor(
            name=f"{response.go_name}{status}",
            response=response_type,
            params=failure_params,
            receiver=receiver,
            fields=_literal_fields(pairs),
        ))

    return result


def _is_data_field(f: Field) -> bool:
    return f.name == DATA_FIELD and f.message is not None and not f.is_map


def response_methods(
    message: Message,
    messages: List[Message],
    kinds: Dict[str, MessageKind],
    out: GeneratedFile,
) -> List[Constructor]:
    """Constructors on `message` for every response whose data is `message`."""
    result: List[Constructor] = []
    for response in messages:
        if not kinds[response.full_name].is_response:
            continue
        for f in response.fields:
            if _is_data_field(f) and not f.is_list and f.message.full_name == message.full_name:
                result.extend(_constructors(
                    out,
                    response,
                    data="x",
                    success_params="",
                    failure_params="err error",
                    receiver=message.go_name,
                ))
    return result


def response_functions(
    response: Message,
    kind: MessageKind,
    out: GeneratedFile,
) -> List[Constructor]:
    """Free constructors for a response message, taking the payload."""
    if not kind.is_response:
        return []
    result: List[Constructor] = []
    for f in response.fields:
        if not _is_data_field(f):
            continue
        prefix = "[]*" if f.is_list else "*"
        payload = prefix + out.qualified(f.message.go_ident)
        result.extend(_constructors(
            out,
            response,
            data="d",
            success_params=f"d {payload}",
            failure_params=f"d {payload}, err error",
            with_error_message=kind is not MessageKind.PAGINATED_RESPONSE,
        ))
    return result


def render_constructors(constructors: List[Constructor]) -> str:
    if not constructors:
        return ""
    template = get_template_env().get_template("response.go.j2")
    return template.render(constructors=constructors)


def generate_responses(
    message: Message,
    messages: List[Message],
    kinds: Dict[str, MessageKind],
    out: GeneratedFile,
) -> str:
    """Status methods on `message`, then its own free constructors."""
    constructors = response_methods(message, messages, kinds, out)
    constructors.extend(response_functions(message, kinds[message.full_name], out))
    return render_constructors(constructors)
