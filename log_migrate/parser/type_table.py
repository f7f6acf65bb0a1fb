from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .. import constants as cs
from ..tree import JavaType

_OBJECT = (cs.TYPE_OBJECT,)
_THROWABLE = (cs.TYPE_THROWABLE, cs.TYPE_OBJECT)
_EXCEPTION = (cs.TYPE_EXCEPTION, *_THROWABLE)
_RUNTIME = (cs.TYPE_RUNTIME_EXCEPTION, *_EXCEPTION)
_ERROR = (cs.TYPE_ERROR, *_THROWABLE)
_IO = ("java.io.IOException", *_EXCEPTION)

SUPERTYPES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        cs.TYPE_OBJECT: (),
        cs.TYPE_STRING: _OBJECT,
        cs.TYPE_CLASS: _OBJECT,
        cs.TYPE_SYSTEM: _OBJECT,
        cs.TYPE_PRINT_STREAM: _OBJECT,
        "java.lang.StringBuilder": _OBJECT,
        "java.lang.StringBuffer": _OBJECT,
        "java.lang.Integer": ("java.lang.Number", *_OBJECT),
        "java.lang.Long": ("java.lang.Number", *_OBJECT),
        "java.lang.Double": ("java.lang.Number", *_OBJECT),
        "java.lang.Boolean": _OBJECT,
        "java.lang.Character": _OBJECT,
        "java.lang.Number": _OBJECT,
        "java.lang.Math": _OBJECT,
        "java.lang.Thread": _OBJECT,
        "java.lang.Runnable": _OBJECT,
        "java.lang.Iterable": _OBJECT,
        "java.lang.Enum": _OBJECT,
        "java.lang.Record": _OBJECT,
        cs.TYPE_THROWABLE: _OBJECT,
        cs.TYPE_EXCEPTION: _THROWABLE,
        cs.TYPE_ERROR: _THROWABLE,
        cs.TYPE_RUNTIME_EXCEPTION: _EXCEPTION,
        "java.lang.InterruptedException": _EXCEPTION,
        "java.lang.ClassNotFoundException": _EXCEPTION,
        "java.lang.CloneNotSupportedException": _EXCEPTION,
        "java.lang.ReflectiveOperationException": _EXCEPTION,
        "java.lang.IllegalArgumentException": _RUNTIME,
        "java.lang.IllegalStateException": _RUNTIME,
        "java.lang.NullPointerException": _RUNTIME,
        "java.lang.NumberFormatException": (
            "java.lang.IllegalArgumentException",
            *_RUNTIME,
        ),
        "java.lang.UnsupportedOperationException": _RUNTIME,
        "java.lang.IndexOutOfBoundsException": _RUNTIME,
        "java.lang.ArithmeticException": _RUNTIME,
        "java.lang.ClassCastException": _RUNTIME,
        "java.lang.SecurityException": _RUNTIME,
        "java.lang.OutOfMemoryError": ("java.lang.VirtualMachineError", *_ERROR),
        "java.lang.StackOverflowError": ("java.lang.VirtualMachineError", *_ERROR),
        "java.lang.AssertionError": _ERROR,
        "java.io.IOException": _EXCEPTION,
        "java.io.FileNotFoundException": _IO,
        "java.io.UncheckedIOException": _RUNTIME,
        "java.net.MalformedURLException": _IO,
        "java.net.URISyntaxException": _EXCEPTION,
        "java.sql.SQLException": _EXCEPTION,
        "java.util.concurrent.ExecutionException": _EXCEPTION,
        "java.util.concurrent.TimeoutException": _EXCEPTION,
        "java.util.NoSuchElementException": _RUNTIME,
        "java.util.ConcurrentModificationException": _RUNTIME,
        "java.util.List": _OBJECT,
        "java.util.Map": _OBJECT,
        "java.util.Set": _OBJECT,
        "java.util.Collection": _OBJECT,
        "java.util.Optional": _OBJECT,
        "org.slf4j.Logger": _OBJECT,
        "org.slf4j.LoggerFactory": _OBJECT,
        "org.slf4j.Marker": _OBJECT,
        "org.slf4j.MarkerFactory": _OBJECT,
        "org.apache.log4j.Category": _OBJECT,
        "org.apache.log4j.Logger": ("org.apache.log4j.Category", *_OBJECT),
        "org.apache.log4j.LogManager": _OBJECT,
        "org.apache.log4j.Priority": _OBJECT,
        "org.apache.log4j.Level": ("org.apache.log4j.Priority", *_OBJECT),
        "org.apache.logging.log4j.Logger": _OBJECT,
        "org.apache.logging.log4j.LogManager": _OBJECT,
        "org.apache.logging.log4j.Level": _OBJECT,
        "org.apache.logging.log4j.Marker": _OBJECT,
        "org.apache.logging.log4j.MarkerManager": _OBJECT,
        "java.util.logging.Logger": _OBJECT,
        "java.util.logging.Level": _OBJECT,
    }
)

JAVA_LANG = "java.lang"

# Static factory and accessor methods whose return type is needed to type a
# receiver: (owner, method) -> return type.
STATIC_METHOD_TYPES: Mapping[tuple[str, str], str] = MappingProxyType(
    {
        ("org.slf4j.LoggerFactory", "getLogger"): "org.slf4j.Logger",
        ("org.slf4j.MarkerFactory", "getMarker"): "org.slf4j.Marker",
        ("org.apache.log4j.Logger", "getLogger"): "org.apache.log4j.Logger",
        ("org.apache.log4j.Logger", "getRootLogger"): "org.apache.log4j.Logger",
        ("org.apache.log4j.LogManager", "getLogger"): "org.apache.log4j.Logger",
        ("org.apache.log4j.LogManager", "getRootLogger"): "org.apache.log4j.Logger",
        ("org.apache.logging.log4j.LogManager", "getLogger"): (
            "org.apache.logging.log4j.Logger"
        ),
        ("org.apache.logging.log4j.LogManager", "getRootLogger"): (
            "org.apache.logging.log4j.Logger"
        ),
        ("org.apache.logging.log4j.MarkerManager", "getMarker"): (
            "org.apache.logging.log4j.Marker"
        ),
        ("java.util.logging.Logger", "getLogger"): "java.util.logging.Logger",
        ("java.util.logging.Logger", "getGlobal"): "java.util.logging.Logger",
        ("java.util.logging.Logger", "getAnonymousLogger"): "java.util.logging.Logger",
        (cs.TYPE_STRING, "format"): cs.TYPE_STRING,
        (cs.TYPE_STRING, "valueOf"): cs.TYPE_STRING,
        (cs.TYPE_STRING, "join"): cs.TYPE_STRING,
        ("java.lang.Integer", "toString"): cs.TYPE_STRING,
        ("java.lang.Long", "toString"): cs.TYPE_STRING,
        ("java.lang.Integer", "parseInt"): cs.TYPE_INT,
        ("java.lang.Long", "parseLong"): cs.TYPE_LONG,
        ("java.lang.System", "currentTimeMillis"): cs.TYPE_LONG,
        ("java.lang.System", "nanoTime"): cs.TYPE_LONG,
        ("java.lang.System", "getProperty"): cs.TYPE_STRING,
        ("java.lang.System", "getenv"): cs.TYPE_STRING,
        ("java.lang.System", "lineSeparator"): cs.TYPE_STRING,
    }
)

STATIC_FIELD_TYPES: Mapping[tuple[str, str], str] = MappingProxyType(
    {
        (cs.TYPE_SYSTEM, "out"): cs.TYPE_PRINT_STREAM,
        (cs.TYPE_SYSTEM, "err"): cs.TYPE_PRINT_STREAM,
    }
)

# Types whose public static fields are constants of the type itself.
SELF_TYPED_CONSTANT_OWNERS = frozenset(
    {
        "org.apache.log4j.Level",
        "org.apache.log4j.Priority",
        "org.apache.logging.log4j.Level",
        "java.util.logging.Level",
    }
)

_STRING_METHODS = frozenset(
    {
        "toString",
        "substring",
        "trim",
        "strip",
        "toUpperCase",
        "toLowerCase",
        "concat",
        "replace",
        "replaceAll",
        "replaceFirst",
        "repeat",
        "intern",
        "formatted",
    }
)

# Instance methods by receiver type: (owner or supertype, method) -> return type.
INSTANCE_METHOD_TYPES: Mapping[tuple[str, str], str] = MappingProxyType(
    {
        (cs.TYPE_OBJECT, "toString"): cs.TYPE_STRING,
        (cs.TYPE_OBJECT, "getClass"): cs.TYPE_CLASS,
        (cs.TYPE_OBJECT, "hashCode"): cs.TYPE_INT,
        (cs.TYPE_OBJECT, "equals"): cs.TYPE_BOOLEAN,
        (cs.TYPE_THROWABLE, cs.METHOD_GET_MESSAGE): cs.TYPE_STRING,
        (cs.TYPE_THROWABLE, cs.METHOD_GET_LOCALIZED_MESSAGE): cs.TYPE_STRING,
        (cs.TYPE_THROWABLE, "getCause"): cs.TYPE_THROWABLE,
        (cs.TYPE_CLASS, cs.METHOD_GET_NAME): cs.TYPE_STRING,
        (cs.TYPE_CLASS, "getSimpleName"): cs.TYPE_STRING,
        (cs.TYPE_CLASS, "getCanonicalName"): cs.TYPE_STRING,
        ("java.lang.StringBuilder", "toString"): cs.TYPE_STRING,
        ("java.lang.StringBuffer", "toString"): cs.TYPE_STRING,
        ("java.lang.Enum", "name"): cs.TYPE_STRING,
        ("java.lang.Thread", cs.METHOD_GET_NAME): cs.TYPE_STRING,
        ("org.slf4j.Logger", cs.METHOD_GET_NAME): cs.TYPE_STRING,
        ("org.apache.logging.log4j.Logger", cs.METHOD_GET_NAME): cs.TYPE_STRING,
        ("org.apache.log4j.Category", cs.METHOD_GET_NAME): cs.TYPE_STRING,
        ("java.util.logging.Logger", cs.METHOD_GET_NAME): cs.TYPE_STRING,
        **{(cs.TYPE_STRING, name): cs.TYPE_STRING for name in _STRING_METHODS},
        (cs.TYPE_STRING, "length"): cs.TYPE_INT,
        (cs.TYPE_STRING, "isEmpty"): cs.TYPE_BOOLEAN,
        (cs.TYPE_STRING, "isBlank"): cs.TYPE_BOOLEAN,
        (cs.TYPE_STRING, "charAt"): cs.TYPE_CHAR,
    }
)


def _by_simple_name(package: str) -> dict[str, str]:
    return {
        fqn.rsplit(".", 1)[-1]: fqn
        for fqn in SUPERTYPES
        if fqn.rsplit(".", 1)[0] == package
    }


JAVA_LANG_TYPES: Mapping[str, str] = MappingProxyType(_by_simple_name(JAVA_LANG))


def known_type(fqn: str) -> JavaType:
    """Type for a fully qualified name, with supertypes when they can be told."""
    if fqn in cs.PRIMITIVE_TYPES:
        return JavaType(fqn)
    if fqn in SUPERTYPES:
        return JavaType(fqn, SUPERTYPES[fqn])
    simple = fqn.rsplit(".", 1)[-1]
    for suffix, supertypes in zip(
        cs.THROWABLE_NAME_SUFFIXES, (_EXCEPTION, _ERROR, _THROWABLE), strict=True
    ):
        if simple.endswith(suffix):
            return JavaType(fqn, supertypes)
    return JavaType(fqn, _OBJECT)


def instance_method_type(receiver: JavaType, name: str) -> JavaType | None:
    for owner in (receiver.fqn, *receiver.supertypes):
        result = INSTANCE_METHOD_TYPES.get((owner, name))
        if result is not None:
            return known_type(result)
    return None


def static_method_type(owner: str, name: str) -> JavaType | None:
    result = STATIC_METHOD_TYPES.get((owner, name))
    return known_type(result) if result is not None else None


def static_field_type(owner: str, name: str) -> JavaType | None:
    result = STATIC_FIELD_TYPES.get((owner, name))
    if result is not None:
        return known_type(result)
    if owner in SELF_TYPED_CONSTANT_OWNERS and name.isupper():
        return known_type(owner)
    return None


_KNOWN_TYPES = frozenset(
    {
        *SUPERTYPES,
        *(owner for owner, _ in STATIC_METHOD_TYPES),
        *(result for result in STATIC_METHOD_TYPES.values()),
        *SELF_TYPED_CONSTANT_OWNERS,
    }
)


def is_known_type(fqn: str) -> bool:
    return fqn in _KNOWN_TYPES
