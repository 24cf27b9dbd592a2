"""Structured-text conversions for the Convert category.

Methods are named "A ↔ B"; Encode converts A to B and Decode converts back.
Most of these re-serialize, so whitespace, key order or number formatting of
the input is not kept and they are flagged lossy.
"""

from __future__ import annotations

import configparser
import csv
import io
import json
import tomllib
from datetime import datetime, timezone
from urllib.parse import parse_qsl, urlencode
from xml.parsers.expat import ExpatError

import markdown
import markdownify
import tomli_w
import xmltodict
import yaml

from ..errors import MalformedInputError
from ..models import Category, TransformContext
from . import as_text, define

_CAT = Category.CONVERT

BASE_BINARY = "Binary"
BASE_OCTAL = "Octal"
BASE_HEX = "Hexadecimal"
_BASES = {BASE_BINARY: (2, "b"), BASE_OCTAL: (8, "o"), BASE_HEX: (16, "x")}

_GLOBAL_SECTION = "global"


def _load_json(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"invalid JSON: {exc}") from exc


def _load_yaml(text: str):
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MalformedInputError(f"invalid YAML: {exc}") from exc


def _dump_json(obj) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False, default=str)


def _dump_yaml(obj) -> str:
    return yaml.safe_dump(obj, sort_keys=False, allow_unicode=True, default_flow_style=False).rstrip("\n")


# ---- JSON <-> YAML ---------------------------------------------------------
def json_to_yaml(data: bytes, ctx: TransformContext) -> str:
    """JSON document to block-style YAML."""
    return _dump_yaml(_load_json(as_text(data)))


def yaml_to_json(data: bytes, ctx: TransformContext) -> str:
    return _dump_json(_load_yaml(as_text(data)))


# ---- YAML <-> TOML ---------------------------------------------------------
def yaml_to_toml(data: bytes, ctx: TransformContext) -> str:
    """YAML mapping to a TOML document."""
    obj = _load_yaml(as_text(data))
    if obj is None:
        obj = {}
    if not isinstance(obj, dict):
        raise MalformedInputError("TOML needs a mapping at the top level")
    try:
        return tomli_w.dumps(obj).rstrip("\n")
    except (TypeError, ValueError) as exc:
        # e.g. null values, which TOML has no way to spell
        raise MalformedInputError(f"cannot express as TOML: {exc}") from exc


def toml_to_yaml(data: bytes, ctx: TransformContext) -> str:
    try:
        obj = tomllib.loads(as_text(data))
    except tomllib.TOMLDecodeError as exc:
        raise MalformedInputError(f"invalid TOML: {exc}") from exc
    return _dump_yaml(obj)


# ---- JSON <-> XML ----------------------------------------------------------
_XML_ROOT = "root"
_XML_ITEM = "item"


def json_to_xml(data: bytes, ctx: TransformContext) -> str:
    """JSON to XML; anything but a single-key object is wrapped in <root>."""
    obj = _load_json(as_text(data))
    if isinstance(obj, dict) and len(obj) == 1 and not isinstance(next(iter(obj.values())), list):
        doc = obj
    elif isinstance(obj, list):
        doc = {_XML_ROOT: {_XML_ITEM: obj}}
    else:
        doc = {_XML_ROOT: obj}
    try:
        return xmltodict.unparse(doc, pretty=True, indent="  ")
    except ValueError as exc:
        raise MalformedInputError(f"cannot express as XML: {exc}") from exc


def xml_to_json(data: bytes, ctx: TransformContext) -> str:
    try:
        obj = xmltodict.parse(as_text(data).strip())
    except ExpatError as exc:
        raise MalformedInputError(f"invalid XML: {exc}") from exc
    return _dump_json(obj)


# ---- Markdown <-> HTML -----------------------------------------------------
def markdown_to_html(data: bytes, ctx: TransformContext) -> str:
    """Markdown (with fenced code and tables) rendered to HTML."""
    return markdown.markdown(as_text(data), extensions=["fenced_code", "tables"])


def html_to_markdown(data: bytes, ctx: TransformContext) -> str:
    return markdownify.markdownify(as_text(data), heading_style=markdownify.ATX).strip()


# ---- JSON <-> CSV ----------------------------------------------------------
def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def json_to_csv(data: bytes, ctx: TransformContext) -> str:
    """Array of JSON objects to CSV with a header row (union of keys, first-seen order)."""
    rows = _load_json(as_text(data))
    if isinstance(rows, dict):
        rows = [rows]
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise MalformedInputError("JSON input must be an object or an array of objects")
    header: list[str] = []
    for row in rows:
        for key in row:
            if key not in header:
                header.append(key)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow([_cell(row.get(key)) for key in header])
    return buf.getvalue().rstrip("\n")


def csv_to_json(data: bytes, ctx: TransformContext) -> str:
    reader = csv.DictReader(io.StringIO(as_text(data).strip()), strict=True)
    rows = [{k: v for k, v in row.items() if k is not None} for row in reader]
    if reader.fieldnames is None:
        raise MalformedInputError("CSV input has no header row")
    return _dump_json(rows)


# ---- CSV <-> TSV -----------------------------------------------------------
def _redelimit(text: str, src: str, dst: str) -> str:
    reader = csv.reader(io.StringIO(text.strip()), delimiter=src, strict=True)
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=dst, lineterminator="\n")
    for row in reader:
        writer.writerow(row)
    return buf.getvalue().rstrip("\n")


def csv_to_tsv(data: bytes, ctx: TransformContext) -> str:
    """Comma separated to tab separated, re-quoting only where needed."""
    return _redelimit(as_text(data), ",", "\t")


def tsv_to_csv(data: bytes, ctx: TransformContext) -> str:
    return _redelimit(as_text(data), "\t", ",")


# ---- key-value <-> query string --------------------------------------------
def kv_to_query(data: bytes, ctx: TransformContext) -> str:
    """One key=value per line to an application/x-www-form-urlencoded query."""
    pairs = []
    for lineno, line in enumerate(as_text(data).splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise MalformedInputError(f"line {lineno}: expected key=value, got {line!r}")
        pairs.append((key.strip(), value.strip()))
    return urlencode(pairs)


def query_to_kv(data: bytes, ctx: TransformContext) -> str:
    text = as_text(data).strip()
    if "?" in text:
        text = text.split("?", 1)[1]
    try:
        pairs = parse_qsl(text, keep_blank_values=True, strict_parsing=bool(text))
    except ValueError as exc:
        raise MalformedInputError(f"invalid query string: {exc}") from exc
    return "\n".join(f"{k}={v}" for k, v in pairs)


# ---- Java properties <-> JSON ----------------------------------------------
_PROP_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t", "\f": "\\f"}
_PROP_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", "f": "\f"}


def _prop_escape(value: str) -> str:
    return "".join(_PROP_ESCAPES.get(ch, ch) for ch in value)


def _prop_unescape(value: str) -> str:
    out = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        if nxt == "u":
            digits = "".join(next(chars, "") for _ in range(4))
            try:
                out.append(chr(int(digits, 16)))
            except ValueError as exc:
                raise MalformedInputError(f"invalid unicode escape \\u{digits}") from exc
        else:
            out.append(_PROP_UNESCAPES.get(nxt, nxt))
    return "".join(out)


def _logical_lines(text: str):
    # A trailing odd backslash continues the entry on the next line.
    pending = ""
    for raw in text.splitlines():
        line = raw.strip() if not pending else raw.lstrip()
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2:
            pending += line[:-1]
            continue
        yield pending + line
        pending = ""
    if pending:
        yield pending


def properties_to_json(data: bytes, ctx: TransformContext) -> str:
    """Java .properties (key=value or key: value) to a flat JSON object."""
    result: dict[str, str] = {}
    for line in _logical_lines(as_text(data)):
        cut = min((i for i in (line.find("="), line.find(":")) if i != -1), default=-1)
        if cut == -1:
            key, value = line, ""
        else:
            key, value = line[:cut], line[cut + 1 :]
        result[_prop_unescape(key.strip())] = _prop_unescape(value.strip())
    return _dump_json(result)


def _flatten(obj: dict, prefix: str = ""):
    for key, value in obj.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _flatten(value, name + ".")
        else:
            yield name, value


def json_to_properties(data: bytes, ctx: TransformContext) -> str:
    obj = _load_json(as_text(data))
    if not isinstance(obj, dict):
        raise MalformedInputError("JSON input must be an object")
    lines = []
    for key, value in _flatten(obj):
        text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
        lines.append(f"{_prop_escape(key)}={_prop_escape(text)}")
    return "\n".join(lines)


# ---- INI <-> JSON ----------------------------------------------------------
def _ini_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None, default_section="__defaults__")
    parser.optionxform = str
    return parser


def ini_to_json(data: bytes, ctx: TransformContext) -> str:
    """INI sections to a JSON object of objects; keys before any section go under "global"."""
    text = as_text(data)
    first = next(
        (ln.strip() for ln in text.splitlines() if ln.strip() and ln.strip()[0] not in "#;"),
        "",
    )
    if first and not first.startswith("["):
        text = f"[{_GLOBAL_SECTION}]\n{text}"
    parser = _ini_parser()
    try:
        parser.read_string(text)
    except configparser.Error as exc:
        raise MalformedInputError(f"invalid INI: {exc}") from exc
    return _dump_json({section: dict(parser.items(section)) for section in parser.sections()})


def json_to_ini(data: bytes, ctx: TransformContext) -> str:
    obj = _load_json(as_text(data))
    if not isinstance(obj, dict):
        raise MalformedInputError("JSON input must be an object")
    flat = {k: v for k, v in obj.items() if not isinstance(v, dict)}
    sections = {k: v for k, v in obj.items() if isinstance(v, dict)}
    flat.update(sections.pop(_GLOBAL_SECTION, {}))

    def _value(v) -> str:
        return v if isinstance(v, str) else json.dumps(v, ensure_ascii=False)

    blocks = []
    if flat:
        blocks.append("\n".join(f"{k}={_value(v)}" for k, v in flat.items()))
    for name, values in sections.items():
        body = "\n".join(f"{k}={_value(v)}" for k, v in values.items())
        blocks.append(f"[{name}]\n{body}" if body else f"[{name}]")
    return "\n\n".join(blocks)


# ---- Unix timestamp <-> ISO 8601 -------------------------------------------
def timestamp_to_iso(data: bytes, ctx: TransformContext) -> str:
    """Unix seconds (or milliseconds, if 13+ digits) to ISO 8601 UTC."""
    text = as_text(data).strip()
    try:
        value = float(text)
    except ValueError as exc:
        raise MalformedInputError(f"not a Unix timestamp: {text!r}") from exc
    if abs(value) >= 1e12:
        value /= 1000.0
    try:
        moment = datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedInputError(f"timestamp out of range: {text}") from exc
    timespec = "seconds" if moment.microsecond == 0 else "milliseconds"
    return moment.isoformat(timespec=timespec).replace("+00:00", "Z")


def iso_to_timestamp(data: bytes, ctx: TransformContext) -> str:
    text = as_text(data).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedInputError(f"not an ISO 8601 date: {text!r}") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    ts = moment.timestamp()
    return str(int(ts)) if ts == int(ts) else f"{ts:.3f}"


# ---- number bases / case ---------------------------------------------------
def _base(ctx: TransformContext) -> tuple[int, str]:
    return _BASES.get(ctx.submode, _BASES[BASE_BINARY])


def decimal_to_base(data: bytes, ctx: TransformContext) -> str:
    """Decimal integer to the selected base."""
    text = as_text(data).strip().replace("_", "")
    try:
        value = int(text, 10)
    except ValueError as exc:
        raise MalformedInputError(f"not a decimal integer: {text!r}") from exc
    return format(value, _base(ctx)[1])


def base_to_decimal(data: bytes, ctx: TransformContext) -> str:
    text = "".join(as_text(data).split()).replace("_", "")
    radix = _base(ctx)[0]
    try:
        return str(int(text, radix))
    except ValueError as exc:
        raise MalformedInputError(f"not a base-{radix} integer: {text!r}") from exc


def swap_case(data: bytes, ctx: TransformContext) -> str:
    """Upper case becomes lower and vice versa (its own inverse)."""
    out = []
    for ch in as_text(data):
        flipped = ch.lower() if ch.isupper() else ch.upper()
        # Characters whose case mapping changes length (e.g. "ß") are left alone.
        out.append(flipped if len(flipped) == 1 else ch)
    return "".join(out)


def register_all(registry) -> None:
    registry.register(define(_CAT, "JSON ↔ YAML", json_to_yaml, yaml_to_json, lossy=True))
    registry.register(define(_CAT, "YAML ↔ TOML", yaml_to_toml, toml_to_yaml, lossy=True))
    registry.register(define(_CAT, "JSON ↔ XML", json_to_xml, xml_to_json, lossy=True))
    registry.register(define(_CAT, "Markdown ↔ HTML", markdown_to_html, html_to_markdown, lossy=True))
    registry.register(define(_CAT, "JSON ↔ CSV", json_to_csv, csv_to_json, lossy=True))
    registry.register(define(_CAT, "CSV ↔ TSV", csv_to_tsv, tsv_to_csv, lossy=True))
    registry.register(define(_CAT, "Key-Value ↔ Query String", kv_to_query, query_to_kv, lossy=True))
    registry.register(define(_CAT, "Properties ↔ JSON", properties_to_json, json_to_properties, lossy=True))
    registry.register(define(_CAT, "INI ↔ JSON", ini_to_json, json_to_ini, lossy=True))
    registry.register(define(_CAT, "Unix Timestamp ↔ ISO 8601", timestamp_to_iso, iso_to_timestamp, lossy=True))
    registry.register(
        define(
            _CAT,
            "Number Bases",
            decimal_to_base,
            base_to_decimal,
            submodes=(BASE_BINARY, BASE_OCTAL, BASE_HEX),
            lossy=True,
        )
    )
    registry.register(define(_CAT, "Case Swapping", swap_case, swap_case))
