"""Re-export individual schema modules for easy imports."""

from .user import UserCreate, UserOut, BodyProfileIn, BodyProfileOut
from .food import FoodOut
from .entry import EntryCreate, EntryOut
from .analysis import AnalysisOut, ChartDataOut, InterventionOut

__all__ = [
    "UserCreate",
    "UserOut",
    "BodyProfileIn",
    "BodyProfileOut",
    "FoodOut",
    "EntryCreate",
    "EntryOut",
    "AnalysisOut",
    "ChartDataOut",
    "InterventionOut",
]
