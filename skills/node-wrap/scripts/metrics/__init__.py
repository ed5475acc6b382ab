from .file_metrics import FILE_METRIC_NOTES, FILE_METRICS, compute_file_metrics
from .function_metrics import (
    BUILTIN_FUNCTIONS,
    METRIC_NOTES,
    METRIC_ORDER,
    function_metrics,
    metric_branching,
    metric_builtin_usage,
    metric_calls,
    metric_division,
    metric_docblock,
    metric_if_else_balance,
    metric_lines,
    metric_parameters,
    metric_string_ops,
)

__all__ = [name for name in globals().keys() if not name.startswith("_")]
