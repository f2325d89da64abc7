"""
clitree value coercion: raw argument text → typed, range-checked values.

Overview
- ValueType: the closed set of scalar types an option slot can hold. Integer widths follow
  the platform's C types (resolved through ctypes), so UCHAR is bounded by 255, UINT by the
  native unsigned int, USIZE by size_t, and so on.
- coerce(text, value_type): single dispatch point; raises InvalidValueError on bad input.
- Slot: typed write-target bound to an option. Carries its ValueType, so the declared type and
  the destination cannot disagree; the parser only ever calls store() or accumulate().

Integer syntax
- A two-character prefix selects the base: 0x → 16, 0o → 8, 0b → 2, otherwise 10.
- The prefix is stripped; the remainder must be made of digits of that base only.
- A sign is accepted in base 10 only ("-42"); unsigned types reject negatives by range.

Bool syntax
- exactly "true" or "false" (case-sensitive).

Float syntax
- locale-independent decimal text ("1.5", "-2e10", ".5", "inf", "nan").
- finite input overflowing the target format (1e39 for FLOAT, 1e309 for DOUBLE) is rejected.
- FLOAT values are rounded to binary32; LONGDOUBLE is carried as a Python float (binary64).
"""
import ctypes
import logging
import math
import re
import struct
from enum import Enum

from .faults import InvalidArgumentError, InvalidValueError
from .utils import Unset, coalesce

logger = logging.getLogger(__name__)


class ValueType(Enum):
    """
    scalar types supported by option slots.
    """
    BOOL       = "bool"

    UCHAR      = "uchar"
    USHORT     = "ushort"
    UINT       = "uint"
    ULONG      = "ulong"
    ULONGLONG  = "ulonglong"
    U8         = "u8"
    U16        = "u16"
    U32        = "u32"
    U64        = "u64"
    USIZE      = "usize"

    CHAR       = "char"
    SHORT      = "short"
    INT        = "int"
    LONG       = "long"
    LONGLONG   = "longlong"
    I8         = "i8"
    I16        = "i16"
    I32        = "i32"
    I64        = "i64"
    ISIZE      = "isize"

    FLOAT      = "float"
    DOUBLE     = "double"
    LONGDOUBLE = "longdouble"

    STRING     = "string"

    @property
    def kind(self):
        """
        one of "bool", "unsigned", "signed", "float" or "string".
        """
        return _LAYOUTS[self][0]

    @property
    def bits(self):
        """
        storage width in bits (0 for bool and string).
        """
        ctype = _LAYOUTS[self][1]
        return ctypes.sizeof(ctype) * 8 if ctype is not None else 0

    @property
    def bounds(self):
        """
        (min, max) for integer types, None otherwise.
        """
        match self.kind:
            case "unsigned":
                return 0, (1 << self.bits) - 1
            case "signed":
                return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1
            case _:
                return None

    def __str__(self):
        return self.value


_LAYOUTS = {
    ValueType.BOOL:       ("bool", None),
    ValueType.UCHAR:      ("unsigned", ctypes.c_ubyte),
    ValueType.USHORT:     ("unsigned", ctypes.c_ushort),
    ValueType.UINT:       ("unsigned", ctypes.c_uint),
    ValueType.ULONG:      ("unsigned", ctypes.c_ulong),
    ValueType.ULONGLONG:  ("unsigned", ctypes.c_ulonglong),
    ValueType.U8:         ("unsigned", ctypes.c_uint8),
    ValueType.U16:        ("unsigned", ctypes.c_uint16),
    ValueType.U32:        ("unsigned", ctypes.c_uint32),
    ValueType.U64:        ("unsigned", ctypes.c_uint64),
    ValueType.USIZE:      ("unsigned", ctypes.c_size_t),
    ValueType.CHAR:       ("signed", ctypes.c_byte),
    ValueType.SHORT:      ("signed", ctypes.c_short),
    ValueType.INT:        ("signed", ctypes.c_int),
    ValueType.LONG:       ("signed", ctypes.c_long),
    ValueType.LONGLONG:   ("signed", ctypes.c_longlong),
    ValueType.I8:         ("signed", ctypes.c_int8),
    ValueType.I16:        ("signed", ctypes.c_int16),
    ValueType.I32:        ("signed", ctypes.c_int32),
    ValueType.I64:        ("signed", ctypes.c_int64),
    ValueType.ISIZE:      ("signed", ctypes.c_ssize_t),
    ValueType.FLOAT:      ("float", ctypes.c_float),
    ValueType.DOUBLE:     ("float", ctypes.c_double),
    ValueType.LONGDOUBLE: ("float", ctypes.c_longdouble),
    ValueType.STRING:     ("string", None),
}

_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}

_DIGITS = {
    2: re.compile(r"[01]+"),
    8: re.compile(r"[0-7]+"),
    10: re.compile(r"[+-]?[0-9]+"),
    16: re.compile(r"[0-9a-fA-F]+"),
}

_DECIMAL = re.compile(r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|(?i:inf|infinity|nan))")
_INFINITY = re.compile(r"[+-]?(?i:inf|infinity)")

# Initial slot values per kind.
_DEFAULTS = {
    "bool": False,
    "unsigned": 0,
    "signed": 0,
    "float": 0.0,
    "string": None,
}


def parse_base(text, /):
    """
    return the numeric base selected by the first two characters of text.
    """
    return _PREFIXES.get(text[:2], 10)


def parse_bool(text, /):
    if text == "true":
        return True
    if text == "false":
        return False
    raise InvalidValueError("invalid bool value %r (expected 'true' or 'false')" % text, input=text)


def parse_integer(text, value_type, /):
    """
    parse text as an integer of value_type, honoring base prefixes and the type's bounds.
    """
    base = parse_base(text)
    digits = text if base == 10 else text[2:]

    if not _DIGITS[base].fullmatch(digits):
        raise InvalidValueError("invalid %s value %r" % (value_type, text), input=text)

    value = int(digits, base)
    minimum, maximum = value_type.bounds
    if not minimum <= value <= maximum:
        raise InvalidValueError(
            "%s value %r out of range [%d, %d]" % (value_type, text, minimum, maximum),
            input=text,
        )
    return value


def _narrow(value, value_type, text):
    # Round to the storage format; finite values that do not fit are overflows.
    if value_type is not ValueType.FLOAT or not math.isfinite(value):
        return value
    try:
        narrowed, = struct.unpack("f", struct.pack("f", value))
    except OverflowError:
        narrowed = math.inf
    if math.isinf(narrowed):
        raise InvalidValueError("%s value %r out of range" % (value_type, text), input=text)
    return narrowed


def parse_float(text, value_type, /):
    """
    parse text as a floating point value of value_type.
    """
    if not _DECIMAL.fullmatch(text):
        raise InvalidValueError("invalid %s value %r" % (value_type, text), input=text)

    value = float(text)
    if math.isinf(value) and not _INFINITY.fullmatch(text):
        raise InvalidValueError("%s value %r out of range" % (value_type, text), input=text)
    return _narrow(value, value_type, text)


def coerce(text, value_type, /):
    """
    convert raw argument text into a value of value_type.

    raises
    - TypeError: when text is not a string or value_type not a ValueType.
    - InvalidValueError: when text is malformed or out of range for value_type.
    """
    if not isinstance(text, str):
        raise TypeError("coerce() first argument must be a string")
    if not isinstance(value_type, ValueType):
        raise TypeError("coerce() second argument must be a value-type")

    match value_type.kind:
        case "bool":
            return parse_bool(text)
        case "unsigned" | "signed":
            return parse_integer(text, value_type)
        case "float":
            return parse_float(text, value_type)
        case "string":
            return text

    raise RuntimeError("unreachable")


class Slot:
    """
    Typed write-target of an option.

    The parser writes only through store() and accumulate(); callers read `value` after parsing.

    Parameters
    - type: ValueType (positional-only)
    - default: initial value; when omitted, False / 0 / 0.0 / None depending on the type kind.
    """

    def __init__(self, type, /, default=Unset):
        if not isinstance(type, ValueType):
            raise TypeError("slot 'type' must be a value-type")
        self._type = type
        self._default = coalesce(default, _DEFAULTS[type.kind])
        self.value = self._default

    @property
    def type(self):
        return self._type

    @property
    def default(self):
        return self._default

    def reset(self):
        self.value = self._default

    def store(self, text=None, /):
        """
        overwrite the value with the coerced text.

        a bool slot without text is set to True (flag semantics).
        """
        if text is None:
            if self._type is not ValueType.BOOL:
                raise InvalidValueError("%s value required" % self._type)
            self.value = True
            return self.value
        self.value = coerce(text, self._type)
        return self.value

    def accumulate(self, text=None, /):
        """
        add to the value: +1 without text, + coerced text (a delta) otherwise.

        bool slots flip (xor with True); the text, if any, is ignored.
        """
        match self._type.kind:
            case "string":
                raise InvalidArgumentError("cannot accumulate into a string slot")
            case "bool":
                self.value = bool(self.value) ^ True
            case "unsigned" | "signed":
                delta = 1 if text is None else parse_integer(text, self._type)
                minimum, maximum = self._type.bounds
                if not minimum <= (value := self.value + delta) <= maximum:
                    raise InvalidValueError(
                        "%s accumulation overflow (%d + %d)" % (self._type, self.value, delta),
                        input=text,
                    )
                self.value = value
            case "float":
                delta = 1.0 if text is None else parse_float(text, self._type)
                value = self.value + delta
                if math.isinf(value) and math.isfinite(self.value) and math.isfinite(delta):
                    raise InvalidValueError("%s accumulation overflow" % self._type, input=text)
                self.value = _narrow(value, self._type, text)
        return self.value

    def __repr__(self):
        return "slot(type=%s, value=%r)" % (self._type, self.value)


__all__ = (
    "ValueType",
    "Slot",
    "coerce",
    "parse_base",
    "parse_bool",
    "parse_integer",
    "parse_float",
)
