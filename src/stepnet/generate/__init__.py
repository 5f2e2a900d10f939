"""Netlist side of the compiler: identifier allocation and network construction."""

from .netlist import (
    GenerationError,
    GeneratorOptions,
    NetlistGenerator,
    NetworkBuilder,
    build_document,
    build_interface,
)
from .uid import IdScheme, UidAllocator, UidPlan

__all__ = [
    "GenerationError",
    "GeneratorOptions",
    "IdScheme",
    "NetlistGenerator",
    "NetworkBuilder",
    "UidAllocator",
    "UidPlan",
    "build_document",
    "build_interface",
]
