"""Convert wire names from an OpenAPI document into Python identifiers.

Every function here is pure and total: any input string produces a valid,
non-empty Python identifier.

* :func:`to_type_name` -- ``PascalCase`` for classes and aliases.
* :func:`to_field_name` -- ``snake_case`` for model fields.
* :func:`to_variant_name` -- ``UPPER_SNAKE`` for enum members.
* :func:`to_function_name` / :func:`to_module_name` -- ``snake_case``.

Conversion splits the input into words on separators (anything that cannot
appear in an identifier, ``_`` included), on camelCase boundaries and on
acronym boundaries, then rejoins them in the target case. The transformation
steps, in order:

1. NFKC-normalise the input (Python normalises identifiers the same way).
2. Replace every character that cannot appear in an identifier with a
   separator.
3. Split camelCase (``petId`` -> ``pet Id``) and acronym
   (``HTTPServer`` -> ``HTTP Server``) boundaries.
4. Rejoin the words in the target case.
5. Prefix a result that cannot start an identifier (leading digit).
6. Suffix Python keywords (and, for fields, ``BaseModel`` attributes and
   the builtin scalar types) with ``_``.

Empty results become a placeholder (:data:`PLACEHOLDER_TYPE` and friends);
callers that care use :func:`is_blank` to report it.

Example::

    >>> to_type_name("session_user")
    'SessionUser'
    >>> to_field_name("firstName")
    'first_name'
    >>> to_variant_name("in-progress")
    'IN_PROGRESS'
    >>> needs_rename("firstName", "first_name")
    True
"""

from __future__ import annotations

import keyword
import re
import unicodedata
from typing import Optional

from pydantic import BaseModel

from swagg.models import HTTPMethod

PLACEHOLDER_TYPE = "Unnamed"
PLACEHOLDER_FIELD = "unnamed"
PLACEHOLDER_VARIANT = "UNNAMED"
PLACEHOLDER_MODULE = "root"

_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"\s+")

# Variant labels for registered status codes, the same on every interpreter.
STATUS_LABELS: dict[int, str] = {
    100: "Continue",
    101: "SwitchingProtocols",
    102: "Processing",
    103: "EarlyHints",
    200: "Ok",
    201: "Created",
    202: "Accepted",
    203: "NonAuthoritativeInformation",
    204: "NoContent",
    205: "ResetContent",
    206: "PartialContent",
    207: "MultiStatus",
    208: "AlreadyReported",
    226: "ImUsed",
    300: "MultipleChoices",
    301: "MovedPermanently",
    302: "Found",
    303: "SeeOther",
    304: "NotModified",
    305: "UseProxy",
    307: "TemporaryRedirect",
    308: "PermanentRedirect",
    400: "BadRequest",
    401: "Unauthorized",
    402: "PaymentRequired",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
    406: "NotAcceptable",
    407: "ProxyAuthenticationRequired",
    408: "RequestTimeout",
    409: "Conflict",
    410: "Gone",
    411: "LengthRequired",
    412: "PreconditionFailed",
    413: "RequestEntityTooLarge",
    414: "RequestUriTooLong",
    415: "UnsupportedMediaType",
    416: "RequestedRangeNotSatisfiable",
    417: "ExpectationFailed",
    418: "ImATeapot",
    421: "MisdirectedRequest",
    422: "UnprocessableEntity",
    423: "Locked",
    424: "FailedDependency",
    425: "TooEarly",
    426: "UpgradeRequired",
    428: "PreconditionRequired",
    429: "TooManyRequests",
    431: "RequestHeaderFieldsTooLarge",
    451: "UnavailableForLegalReasons",
    500: "InternalServerError",
    501: "NotImplemented",
    502: "BadGateway",
    503: "ServiceUnavailable",
    504: "GatewayTimeout",
    505: "HttpVersionNotSupported",
    506: "VariantAlsoNegotiates",
    507: "InsufficientStorage",
    508: "LoopDetected",
    510: "NotExtended",
    511: "NetworkAuthenticationRequired",
}

# Field names that would shadow pydantic.BaseModel attributes, or the
# builtin types generated annotations use bare.
_RESERVED_FIELDS = frozenset(
    name for name in dir(BaseModel) if not name.startswith("_")
) | {"bool", "bytes", "float", "int", "str"}


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() and ("a" + ch).isidentifier()


def split_words(wire_name: str) -> list[str]:
    """Split *wire_name* into its words, dropping every separator."""
    text = unicodedata.normalize("NFKC", wire_name)
    text = "".join(ch if _is_word_char(ch) else " " for ch in text)
    text = _CAMEL_RE.sub(r"\1 \2", text)
    text = _ACRONYM_RE.sub(r"\1 \2", text)
    return [word for word in _SEPARATOR_RE.split(text) if word]


def is_blank(wire_name: str) -> bool:
    """Return True if *wire_name* has no usable characters at all."""
    return not split_words(wire_name)


def _finish(result: str, placeholder: str, prefix: str, reserved: frozenset[str] = frozenset()) -> str:
    if not result:
        return placeholder
    if not result[0].isidentifier():
        result = prefix + result
    if keyword.iskeyword(result) or result in reserved:
        result += "_"
    return result


def to_type_name(wire_name: str) -> str:
    """Convert *wire_name* to ``PascalCase``."""
    words = split_words(wire_name)
    result = "".join(word[:1].upper() + word[1:].lower() for word in words)
    return _finish(result, PLACEHOLDER_TYPE, "T")


def to_field_name(wire_name: str) -> str:
    """Convert *wire_name* to ``snake_case`` safe for a pydantic field."""
    result = "_".join(word.lower() for word in split_words(wire_name))
    return _finish(result, PLACEHOLDER_FIELD, "field_", _RESERVED_FIELDS)


def to_variant_name(wire_name: str) -> str:
    """Convert *wire_name* to ``UPPER_SNAKE`` for an enum member."""
    result = "_".join(word.upper() for word in split_words(wire_name))
    return _finish(result, PLACEHOLDER_VARIANT, "VALUE_")


def to_function_name(wire_name: str) -> str:
    """Convert *wire_name* to ``snake_case`` for a function or method."""
    result = "_".join(word.lower() for word in split_words(wire_name))
    return _finish(result, PLACEHOLDER_FIELD, "fn_")


def to_module_name(wire_name: str) -> str:
    """Convert *wire_name* (typically a path template) to a module name.

    ``/`` and other inputs without words map to :data:`PLACEHOLDER_MODULE`.
    """
    result = "_".join(word.lower() for word in split_words(wire_name))
    return _finish(result, PLACEHOLDER_MODULE, "path_")


def needs_rename(wire_name: str, converted: str) -> bool:
    """Return True if *converted* differs from *wire_name*.

    The emitter attaches a serialization alias holding the wire name
    whenever this is True.
    """
    return wire_name != converted


# --- Operations ---


def operation_name(method: HTTPMethod, path: str, operation_id: Optional[str] = None) -> str:
    """Name an operation after its ``operationId``, or after method and path.

    Path parameters contribute ``by_<name>``::

        >>> operation_name(HTTPMethod.GET, "/pets/{petId}")
        'get_pets_by_petId'
    """
    if operation_id:
        return operation_id
    parts = [method.value]
    for segment in path.split("/"):
        if not segment:
            continue
        if segment.startswith("{") and segment.endswith("}"):
            parts.append(f"by_{segment[1:-1]}")
        else:
            parts.append(segment)
    return "_".join(parts)


def status_label(status: str, override: Optional[str] = None) -> str:
    """Return the variant label for a response status.

    * An explicit ``x-variant-name`` *override* wins.
    * ``default`` becomes ``Default``.
    * Registered HTTP codes use :data:`STATUS_LABELS` (``200`` -> ``Ok``,
      ``404`` -> ``NotFound``).
    * Anything else becomes ``Status<status>`` (``Status299``, ``Status2XX``).
    """
    if override:
        return to_type_name(override)
    if status.lower() == "default":
        return "Default"
    if status.isdigit() and int(status) in STATUS_LABELS:
        return STATUS_LABELS[int(status)]
    if status.isalnum():
        return f"Status{status.upper()}"
    return f"Status{to_type_name(status)}"
