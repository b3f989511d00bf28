"""Metadata header codec for book documents.

A document starts with a ``---`` delimited YAML block followed by free-form
Markdown. Reading never fails: a missing header yields empty metadata and a
header PyYAML cannot load is re-read line by line, skipping what it cannot
make sense of.
"""

import logging
import re

import yaml

logger = logging.getLogger(__name__)

SUMMARY_KEY = "reading_history_summary"

Scalar = str | int | float | bool
MetadataValue = Scalar | list[Scalar] | list[dict[str, Scalar]] | None
Metadata = dict[str, MetadataValue]

_HEADER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<header>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)

_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+(?:[eE][-+]?\d+)?$")
# Zero-padded identifiers of ISBN length stay text
_PADDED_ID_RE = re.compile(r"^0(?:\d{9}|\d{12})$")
_LIST_ITEM_RE = re.compile(
    r"""\s*(?:"((?:[^"\\]|\\.)*)"|'((?:[^']|'')*)'|([^,]*?))\s*(?:,|$)"""
)
_RECORD_FIELD_RE = re.compile(r"^(?P<key>[A-Za-z_][\w-]*)\s*:\s*(?P<value>.*)$")

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"
_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"
_NUMBER_FIRST = list("-0123456789")


class _HeaderLoader(yaml.SafeLoader):
    """SafeLoader that keeps dates as strings and only knows true/false.

    Numbers are plain base-10 integers and decimals; octal, sexagesimal and
    underscore forms are read as text.
    """


_HeaderLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag not in (_TIMESTAMP_TAG, _BOOL_TAG, _INT_TAG, _FLOAT_TAG)
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_HeaderLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)
_HeaderLoader.add_implicit_resolver(_INT_TAG, _INT_RE, _NUMBER_FIRST)
_HeaderLoader.add_implicit_resolver(_FLOAT_TAG, _FLOAT_RE, _NUMBER_FIRST)


def _construct_int(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> int | str:
    text = loader.construct_scalar(node)
    if _PADDED_ID_RE.match(text):
        return text
    try:
        return int(text, 10)
    except ValueError:
        # Explicit !!int tags may still use other YAML notations
        return loader.construct_yaml_int(node)


_HeaderLoader.add_constructor(_INT_TAG, _construct_int)


class _Quoted(str):
    """String value that must be emitted double-quoted."""


class _HeaderDumper(yaml.SafeDumper):
    """Indents block sequences under their key, as hand-written headers do."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)

    def ignore_aliases(self, data: object) -> bool:
        return True


def _represent_quoted(dumper: yaml.SafeDumper, data: _Quoted) -> yaml.Node:
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style='"')


def _represent_list(dumper: yaml.SafeDumper, data: list) -> yaml.Node:
    flow = all(not isinstance(item, (dict, list)) for item in data)
    return dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=flow)


_HeaderDumper.add_representer(_Quoted, _represent_quoted)
_HeaderDumper.add_representer(list, _represent_list)


def parse_document(text: str) -> tuple[Metadata, str]:
    """Split a document into its header mapping and body.

    Args:
        text: Full document text.

    Returns:
        ``(metadata, body)``. Without a header, metadata is empty and the
        body is the whole input. A leading byte order mark is dropped
        along with the header.
    """
    content = text.removeprefix("\ufeff")
    match = _HEADER_RE.match(content)
    if not match:
        return {}, text
    return parse_header(match.group("header")), content[match.end():]


def parse_header(header_text: str) -> Metadata:
    """Decode the text between the ``---`` delimiters into an ordered mapping."""
    if not header_text.strip():
        return {}

    try:
        loaded = yaml.load(header_text, Loader=_HeaderLoader)
    except yaml.YAMLError as exc:
        logger.warning("Malformed metadata header, falling back to line parser: %s", exc)
        loaded = _parse_lines(header_text)

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.warning("Metadata header is not a mapping (%s), ignoring it", type(loaded).__name__)
        return {}

    metadata: Metadata = {}
    for key, value in loaded.items():
        key = str(key)
        if key == SUMMARY_KEY:
            metadata[key] = _normalize_summary(value)
        else:
            metadata[key] = value
    return metadata


def serialize_header(metadata: Metadata) -> str:
    """Encode a header mapping as a ``---`` delimited YAML block.

    Keys keep their order. ``None`` values are omitted, strings are
    double-quoted, scalar lists use flow style and record lists block style.
    """
    prepared: dict = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if key == SUMMARY_KEY:
            value = _normalize_summary(value)
        prepared[key] = _quote_strings(value)

    if not prepared:
        return "---\n---"

    dumped = yaml.dump(
        prepared,
        Dumper=_HeaderDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )
    return f"---\n{dumped}---"


def compose_document(metadata: Metadata, body: str) -> str:
    """Join a header mapping and a body back into one document."""
    return f"{serialize_header(metadata)}\n{body}"


def _normalize_summary(value: object) -> list[dict]:
    if value is None or value == "":
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring %s of type %s", SUMMARY_KEY, type(value).__name__)
        return []
    records = [item for item in value if isinstance(item, dict)]
    if len(records) != len(value):
        logger.warning(
            "Dropped %d non-record item(s) from %s", len(value) - len(records), SUMMARY_KEY
        )
    return records


def _quote_strings(value: object) -> object:
    if isinstance(value, str):
        return _Quoted(value)
    if isinstance(value, list):
        return [_quote_strings(item) for item in value]
    if isinstance(value, dict):
        return {
            str(k): _quote_strings(v) for k, v in value.items() if v is not None
        }
    return value


# -- lenient line parser ----------------------------------------------------


def _parse_lines(header_text: str) -> Metadata:
    """Best-effort reading of a header that PyYAML rejected.

    Handles ``key: value`` lines and one level of indented ``- item`` or
    ``- key: value`` blocks. Anything else is skipped.
    """
    metadata: Metadata = {}
    block_key: str | None = None

    for line_no, raw in enumerate(header_text.splitlines(), start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if raw[:1] in (" ", "\t") or stripped.startswith("- "):
            if block_key is None or not _absorb_block_line(metadata, block_key, stripped):
                logger.warning("Skipping header line %d: %r", line_no, raw)
            continue

        key, sep, value = stripped.partition(":")
        key = key.strip()
        if not sep or not key:
            logger.warning("Skipping header line %d: %r", line_no, raw)
            block_key = None
            continue

        value = value.strip()
        if value:
            metadata[key] = coerce_scalar(value)
            block_key = None
        else:
            metadata[key] = None
            block_key = key

    return metadata


def _absorb_block_line(metadata: Metadata, key: str, stripped: str) -> bool:
    items = metadata.get(key)
    if items is None:
        items = []
        metadata[key] = items
    if not isinstance(items, list):
        return False

    if stripped.startswith("-"):
        item = stripped[1:].strip()
        field = _RECORD_FIELD_RE.match(item)
        if field and not item.startswith(('"', "'")):
            items.append({field.group("key"): coerce_scalar(field.group("value").strip())})
        else:
            items.append(coerce_scalar(item))
        return True

    field = _RECORD_FIELD_RE.match(stripped)
    if field and items and isinstance(items[-1], dict):
        items[-1][field.group("key")] = coerce_scalar(field.group("value").strip())
        return True
    return False


def coerce_scalar(value: str) -> MetadataValue:
    """Interpret a raw header value.

    Quoted text stays a string (quotes stripped, escapes undone), bracketed
    comma lists become lists, ``true``/``false`` become booleans and
    numeric-looking text becomes a base-10 number
    (zero-padded identifiers of ISBN length excepted).
    """
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    if value.startswith("[") and value.endswith("]"):
        return _coerce_list(value[1:-1])

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in ("null", "~"):
        return None
    if _PADDED_ID_RE.match(value):
        return value
    if _INT_RE.match(value):
        return int(value, 10)
    if _FLOAT_RE.match(value):
        return float(value)
    return value


def _coerce_list(inner: str) -> list[Scalar]:
    if not inner.strip():
        return []
    items: list[Scalar] = []
    for match in _LIST_ITEM_RE.finditer(inner):
        if match.start() == len(inner):
            break
        double, single, bare = match.groups()
        if double is not None:
            items.append(double.replace('\\"', '"').replace("\\\\", "\\"))
        elif single is not None:
            items.append(single.replace("''", "'"))
        elif bare:
            coerced = coerce_scalar(bare.strip())
            if coerced is not None:
                items.append(coerced)
    return items
