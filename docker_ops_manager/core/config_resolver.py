"""Config document loading and interpretation.

A config document is a YAML file in one of three dialects: compose files,
stack files (compose with a top-level ``networks`` section) and custom
files where units are found by their ``image``/``container_name`` keys.
"""

import copy
import logging
import re
import shlex
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml

from ..services.exceptions import ConfigInvalidError, UnsupportedDialectError
from ..utils.logging_config import log_operation
from .constants import (
    COMPOSE_FILE_NAMES,
    DATE_PLACEHOLDER,
    DEFAULT_PROJECT_NAME_PATTERN,
    DOCKER_BINARY,
    EXTENSION_KEY,
    READINESS_TIMEOUT_KEY,
    SERVICE_NAME_PLACEHOLDER,
    STACK_FILE_NAMES,
    UNIT_NAME_PATTERN,
)

logger = logging.getLogger(__name__)

_UNIT_NAME_RE = re.compile(UNIT_NAME_PATTERN)
_KEY_LINE_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<key>[A-Za-z0-9_.\-\"']+)[ \t]*:(?:[ \t]+(?P<value>.*?))?[ \t]*$")
_ITEM_LINE_RE = re.compile(r"^(?P<indent>[ \t]*)-[ \t]+(?P<value>.*?)[ \t]*$")
_HAS_KEYS_RE = re.compile(r"^[ \t]*[A-Za-z0-9_.\-]+[ \t]*:", re.MULTILINE)


class Dialect(Enum):
    """Config document dialects."""
    COMPOSE = "docker-compose"
    STACK = "docker-stack"
    CUSTOM = "custom"


@dataclass
class ConfigDocument:
    """A loaded config document. Never mutated after loading."""
    path: Path  # Absolute path
    text: str
    data: Dict[str, Any] = field(default_factory=dict)
    structured: bool = True  # False when recovered by pattern extraction

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ConfigDocument":
        """Read and parse a config document.

        Raises:
            ConfigInvalidError: If the file is missing, unreadable, empty,
                or cannot be interpreted as a mapping
        """
        path = Path(path).expanduser()
        if not path.is_file():
            raise ConfigInvalidError(f"Config file not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigInvalidError(f"Cannot read config file {path}: {e}") from e
        if not text.strip():
            raise ConfigInvalidError(f"Config file is empty: {path}")

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            if not _HAS_KEYS_RE.search(text):
                raise ConfigInvalidError(f"Invalid YAML in {path}: {e}") from e
            log_operation(logger, logging.WARNING, "CONFIG", str(path),
                          f"YAML parsing failed, falling back to pattern extraction: {e}")
            return cls(path=path.resolve(), text=text, data=_scan_patterns(text), structured=False)

        if not isinstance(data, dict):
            raise ConfigInvalidError(f"Config file {path} is not a YAML mapping")
        return cls(path=path.resolve(), text=text, data=data)

    @property
    def services(self) -> Dict[str, Any]:
        services = self.data.get("services")
        return services if isinstance(services, dict) else {}


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def _scan_patterns(text: str) -> Dict[str, Any]:
    """Recover nested keys, scalars and list items from YAML-like text.

    Only block mappings and block sequences of scalars are understood.
    Anything else is skipped.
    """
    root: Dict[str, Any] = {}
    # (indent of the owning line, container)
    stack: List[tuple] = [(-1, root)]
    pending: Optional[tuple] = None  # (indent, parent dict, key) awaiting children

    for raw in text.splitlines():
        if not raw.strip() or raw.lstrip().startswith("#"):
            continue
        line = raw.split(" #", 1)[0].rstrip()
        indent = len(line) - len(line.lstrip())
        item = _ITEM_LINE_RE.match(line)
        key_match = None if item else _KEY_LINE_RE.match(line)
        if not item and not key_match:
            continue

        if pending is not None:
            pending_indent, parent, key = pending
            pending = None
            if indent > pending_indent or (item and indent == pending_indent):
                container: Union[Dict[str, Any], List[Any]] = [] if item else {}
                parent[key] = container
                stack.append((pending_indent, container))

        while len(stack) > 1 and stack[-1][0] >= indent and not (
                item and isinstance(stack[-1][1], list) and stack[-1][0] == indent):
            stack.pop()
        container = stack[-1][1]

        if item:
            if isinstance(container, list):
                container.append(_unquote(item.group("value")))
            continue

        if not isinstance(container, dict):
            continue
        key = _unquote(key_match.group("key"))
        value = key_match.group("value")
        if value:
            container[key] = _unquote(value)
        else:
            container[key] = None
            pending = (indent, container, key)

    return root


def _iter_unit_specs(node: Any) -> Iterator[Dict[str, Any]]:
    """Yield every mapping that declares an image or container_name, in document order."""
    if isinstance(node, dict):
        if isinstance(node.get("image"), str) or isinstance(node.get("container_name"), str):
            yield node
        for value in node.values():
            yield from _iter_unit_specs(value)
    elif isinstance(node, list):
        for value in node:
            yield from _iter_unit_specs(value)


def _image_basename(image: str) -> str:
    """'registry.io/team/nginx:alpine' -> 'nginx'."""
    base = image.strip().split("@", 1)[0].rsplit("/", 1)[-1]
    return base.split(":", 1)[0]


def classify(doc: ConfigDocument) -> Dialect:
    """Determine the dialect of a config document."""
    filename = doc.path.name.lower()
    if filename in COMPOSE_FILE_NAMES:
        return Dialect.COMPOSE
    if filename in STACK_FILE_NAMES:
        return Dialect.STACK
    if isinstance(doc.data.get("services"), dict):
        if "networks" in doc.data:
            return Dialect.STACK
        return Dialect.COMPOSE
    return Dialect.CUSTOM


def list_units(doc: ConfigDocument, dialect: Dialect) -> List[str]:
    """Names of the units declared in a document, in declaration order."""
    if dialect in (Dialect.COMPOSE, Dialect.STACK):
        return [str(name) for name in doc.services]
    if dialect is Dialect.CUSTOM:
        specs = list(_iter_unit_specs(doc.data))
        names = [spec["container_name"] for spec in specs if isinstance(spec.get("container_name"), str)]
        names += [
            _image_basename(spec["image"]) for spec in specs
            if isinstance(spec.get("image"), str) and not isinstance(spec.get("container_name"), str)
        ]
        return list(dict.fromkeys(name for name in names if name))
    raise UnsupportedDialectError(f"Unsupported config dialect: {dialect}")


def _unit_spec(doc: ConfigDocument, unit_name: str, dialect: Optional[Dialect] = None) -> Optional[Dict[str, Any]]:
    """Find a unit's definition by declared or runtime name."""
    dialect = dialect or classify(doc)
    if dialect in (Dialect.COMPOSE, Dialect.STACK):
        spec = doc.services.get(unit_name)
        if isinstance(spec, dict):
            return spec
        for spec in doc.services.values():
            if isinstance(spec, dict) and spec.get("container_name") == unit_name:
                return spec
        return None
    if dialect is Dialect.CUSTOM:
        specs = list(_iter_unit_specs(doc.data))
        for spec in specs:
            if spec.get("container_name") == unit_name:
                return spec
        for spec in specs:
            if isinstance(spec.get("image"), str) and _image_basename(spec["image"]) == unit_name:
                return spec
        return None
    raise UnsupportedDialectError(f"Unsupported config dialect: {dialect}")


def unit_image(doc: ConfigDocument, unit_name: str, dialect: Optional[Dialect] = None) -> Optional[str]:
    """Image reference declared for a unit, if any."""
    spec = _unit_spec(doc, unit_name, dialect) or {}
    image = spec.get("image")
    return image.strip() if isinstance(image, str) and image.strip() else None


def resolve_runtime_name(doc: ConfigDocument, declared_name: str,
                         dialect: Optional[Dialect] = None) -> str:
    """The container name docker will use for a declared unit."""
    spec = _unit_spec(doc, declared_name, dialect)
    if spec:
        container_name = spec.get("container_name")
        if isinstance(container_name, str) and container_name.strip():
            return container_name.strip()
    return declared_name


def runtime_names(doc: ConfigDocument) -> Dict[str, str]:
    """Map each declared unit to its container name, in declaration order."""
    dialect = classify(doc)
    return {unit: resolve_runtime_name(doc, unit, dialect) for unit in list_units(doc, dialect)}


def readiness_override(doc: ConfigDocument, unit_name: str) -> Optional[int]:
    """Per-unit readiness timeout from the x-docker-ops extension, if valid."""
    spec = _unit_spec(doc, unit_name)
    if not spec:
        return None
    extension = spec.get(EXTENSION_KEY)
    if not isinstance(extension, dict):
        return None
    value = extension.get(READINESS_TIMEOUT_KEY)
    if isinstance(value, bool):
        return None
    try:
        timeout = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return timeout if timeout > 0 else None


def _environment_args(environment: Any) -> List[str]:
    args = []
    if isinstance(environment, dict):
        for key, value in environment.items():
            args += ["-e", str(key) if value is None else f"{key}={value}"]
    elif isinstance(environment, list):
        for entry in environment:
            args += ["-e", str(entry)]
    return args


def _volume_args(volumes: Any) -> List[str]:
    args = []
    if not isinstance(volumes, list):
        return args
    for volume in volumes:
        if isinstance(volume, str):
            args += ["-v", volume]
        elif isinstance(volume, dict) and volume.get("target"):
            # Long syntax
            source = volume.get("source")
            args += ["-v", f"{source}:{volume['target']}" if source else str(volume["target"])]
    return args


def extract_run_command(doc: ConfigDocument, unit_name: str, dialect: Dialect,
                        no_start: bool = False) -> str:
    """Assemble the docker run (or create) command line for a unit.

    Raises:
        ConfigInvalidError: If no image can be determined for the unit
    """
    spec = _unit_spec(doc, unit_name, dialect) or {}
    image = spec.get("image")
    if not isinstance(image, str) or not image.strip():
        raise ConfigInvalidError(f"No image found for unit '{unit_name}' in {doc.path}")

    parts = [DOCKER_BINARY, "create"] if no_start else [DOCKER_BINARY, "run", "-d"]
    parts += ["--name", resolve_runtime_name(doc, unit_name, dialect)]

    ports = spec.get("ports")
    if isinstance(ports, list):
        for port in ports:
            if isinstance(port, (str, int)):
                parts += ["-p", str(port)]
    parts += _environment_args(spec.get("environment"))
    parts += _volume_args(spec.get("volumes"))
    parts.append(image.strip())

    command = spec.get("command")
    if isinstance(command, str) and command.strip():
        parts += shlex.split(command)
    elif isinstance(command, list):
        parts += [str(arg) for arg in command]

    return " ".join(shlex.quote(part) for part in parts)


def project_name(doc: ConfigDocument, unit_name: str,
                 pattern: str = DEFAULT_PROJECT_NAME_PATTERN,
                 today: Optional[date] = None) -> str:
    """Compose project name for a unit."""
    explicit = doc.data.get("name")
    if isinstance(explicit, str) and explicit.strip():
        raw = explicit
    else:
        stamp = (today or date.today()).strftime("%d-%m-%y")
        raw = pattern.replace(SERVICE_NAME_PLACEHOLDER, unit_name).replace(DATE_PLACEHOLDER, stamp)
    name = re.sub(r"[^a-z0-9_-]", "-", raw.strip().lower()).strip("-_")
    return name or re.sub(r"[^a-z0-9_-]", "-", unit_name.lower())


def build_compose_manifest(doc: ConfigDocument, unit_name: str, project: str) -> Dict[str, Any]:
    """Single-service compose manifest for one unit of a compose or stack document."""
    spec = doc.services.get(unit_name)
    if not isinstance(spec, dict):
        raise ConfigInvalidError(f"Service '{unit_name}' is not defined in {doc.path}")

    service = copy.deepcopy(spec)
    service.pop(EXTENSION_KEY, None)
    service["container_name"] = resolve_runtime_name(doc, unit_name)

    manifest: Dict[str, Any] = {"name": project}
    if doc.data.get("version") is not None:
        manifest["version"] = str(doc.data["version"])
    manifest["services"] = {unit_name: service}
    for section in ("volumes", "networks"):
        if doc.data.get(section) is not None:
            manifest[section] = copy.deepcopy(doc.data[section])
    return manifest


def validate_unit_name(name: str) -> bool:
    """Check a unit name against docker's container naming rules."""
    return bool(name) and bool(_UNIT_NAME_RE.fullmatch(name))


def summarize(doc: ConfigDocument) -> str:
    """Human-readable overview of a config document."""
    dialect = classify(doc)
    lines = [
        f"File: {doc.path}",
        f"Type: {dialect.value}",
    ]
    if not doc.structured:
        lines.append("Parsed: pattern extraction (YAML was invalid)")
    units = list_units(doc, dialect)
    lines.append("Containers:" if units else "Containers: none")
    for unit in units:
        spec = _unit_spec(doc, unit, dialect) or {}
        image = spec.get("image") or "no image"
        runtime_name = resolve_runtime_name(doc, unit, dialect)
        label = unit if runtime_name == unit else f"{unit} ({runtime_name})"
        lines.append(f"  - {label}: {image}")
    return "\n".join(lines)
