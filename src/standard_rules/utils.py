import copy
import enum
import logging
import sys
from typing import IO, Any, Dict, Iterable, Mapping, MutableMapping, Optional

PACKAGE_LOGGER = "standard_rules"
RULE_LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [rule=%(rule_name)s] %(message)s"


# --- Logging ---

class RuleLogFilter(logging.Filter):
    """Give every record a ``rule_name`` so RULE_LOG_FORMAT never fails on engine-level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        rule_name = getattr(record, "rule_name", None)
        record.rule_name = "-" if rule_name is None else str(rule_name)
        return True


class RuleLogHandler(logging.StreamHandler):
    """Stream handler installed by init_rule_logging."""


def init_rule_logging(level: int = logging.INFO, stream: Optional[IO[str]] = None) -> logging.Handler:
    """
    Send this package's log records to a stream, tagged with the rule they concern.

    Only the ``standard_rules`` logger is configured; the root logger and the
    application's own handlers are left alone. Calling it again replaces the
    handler installed by the previous call instead of adding a second one.

    Args:
        level: Level for the ``standard_rules`` logger
        stream: Output stream, ``sys.stderr`` when omitted

    Returns:
        The installed handler
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in package_logger.handlers[:]:
        if isinstance(handler, RuleLogHandler):
            package_logger.removeHandler(handler)
            handler.close()

    handler = RuleLogHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(RULE_LOG_FORMAT))
    handler.addFilter(RuleLogFilter())

    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler


# --- Deep Merge ---

class ValueKind(enum.Enum):
    """How a value behaves when two states are merged."""

    MAPPING = "mapping"    # Merged key by key
    SEQUENCE = "sequence"  # Replaced as a whole
    SCALAR = "scalar"      # Replaced
    OPAQUE = "opaque"      # Replaced; never looked into


_SEQUENCE_TYPES = (list, tuple, set, frozenset)
_SCALAR_TYPES = (type(None), bool, int, float, complex, str)


def classify_value(value: Any) -> ValueKind:
    """
    Classify a value into one of the closed set of merge kinds.

    Only ``dict`` is a mapping. Everything that is neither a sequence nor a
    scalar is opaque: dates and times, ``bytes``/``bytearray``, ``Decimal``,
    ``UUID``, functions, classes and their instances.
    """
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, _SEQUENCE_TYPES):
        return ValueKind.SEQUENCE
    if isinstance(value, _SCALAR_TYPES):
        return ValueKind.SCALAR
    return ValueKind.OPAQUE


def merge_deep(
    target: MutableMapping[str, Any],
    source: Mapping[str, Any],
    *,
    skip_keys: Optional[Iterable[str]] = None,
    override: bool = True,
) -> MutableMapping[str, Any]:
    """
    Deep-merge ``source`` into ``target`` in place and return ``target``.

    Only plain mappings are merged recursively. Sequences, scalars and opaque
    values (dates, binary data, functions, class instances) are assigned
    atomically. A colliding key is overwritten when ``override`` is true and
    left alone otherwise. Values are assigned by reference.

    If either argument is not a mapping, ``target`` is returned untouched.
    """
    if classify_value(target) is not ValueKind.MAPPING:
        return target
    if classify_value(source) is not ValueKind.MAPPING:
        return target

    skipped = frozenset(skip_keys or ())

    for key, value in source.items():
        if key in skipped:
            continue

        if (
            key in target
            and classify_value(value) is ValueKind.MAPPING
            and classify_value(target[key]) is ValueKind.MAPPING
        ):
            merge_deep(target[key], value, skip_keys=skipped, override=override)
            continue

        if override or key not in target:
            target[key] = value

    return target


def clone_state(state: Dict[str, Any]) -> Dict[str, Any]:
    """Return an independent deep copy of a state mapping."""
    return copy.deepcopy(state)
