"""stepnet data model: Program (parse output) and NetlistDocument (generator output)."""

from .diagnostics import Diagnostic, DiagnosticCode, Severity
from .netlist import (
    Connection,
    FunctionBlock,
    InstanceDB,
    Interface,
    InterfaceSection,
    LiteralAccess,
    LocalAccess,
    Member,
    MultilingualText,
    NetlistDocument,
    Network,
    NetworkPart,
    Part,
    PartType,
    SectionName,
    Subelement,
    TextItem,
    Wire,
)
from .program import (
    Assignment,
    Comparison,
    Condition,
    ConditionGroup,
    CrossReference,
    FunctionBlockTag,
    LogicOperator,
    Program,
    RestStep,
    SequentialStep,
    Statistics,
    Step,
    TimerSpec,
    Transition,
    Variable,
)

__all__ = [
    "Assignment",
    "Comparison",
    "Condition",
    "ConditionGroup",
    "Connection",
    "CrossReference",
    "Diagnostic",
    "DiagnosticCode",
    "FunctionBlock",
    "FunctionBlockTag",
    "InstanceDB",
    "Interface",
    "InterfaceSection",
    "LiteralAccess",
    "LocalAccess",
    "LogicOperator",
    "Member",
    "MultilingualText",
    "NetlistDocument",
    "Network",
    "NetworkPart",
    "Part",
    "PartType",
    "Program",
    "RestStep",
    "SectionName",
    "SequentialStep",
    "Severity",
    "Statistics",
    "Step",
    "Subelement",
    "TextItem",
    "TimerSpec",
    "Transition",
    "Variable",
    "Wire",
]
