"""Bounded help-probing walk over a program's command tree."""

from helpscope.introspection.introspector import CLIIntrospector
from helpscope.introspection.types import (
    Command,
    CommandCategory,
    CommandStructure,
    IntrospectionTelemetry,
    ProbeEvent,
    Subcommand,
)

__all__ = [
    "CLIIntrospector",
    "Command",
    "CommandCategory",
    "CommandStructure",
    "IntrospectionTelemetry",
    "ProbeEvent",
    "Subcommand",
]
