"""Classification function invocation and response handling."""

from .dispatcher import ClassifierDispatcher, ClassifierFunctions
from .invoker import FunctionInvoker, LambdaInvoker
from .schemas import (
    DuplicateSummary,
    ParseResult,
    RecognitionMatch,
    RecognitionResponse,
    parse_blur,
    parse_duplicate,
    parse_recognition,
)

__all__ = [
    "ClassifierDispatcher",
    "ClassifierFunctions",
    "DuplicateSummary",
    "FunctionInvoker",
    "LambdaInvoker",
    "ParseResult",
    "RecognitionMatch",
    "RecognitionResponse",
    "parse_blur",
    "parse_duplicate",
    "parse_recognition",
]
