from .classifier import MethodClassifier, qualified_name
from .table import TWISTED_METHOD_TABLE

__all__ = ["MethodClassifier", "TWISTED_METHOD_TABLE", "qualified_name"]
