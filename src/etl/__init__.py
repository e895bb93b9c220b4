from .availability_processor import AvailabilityProcessor
from .chart_processor import ChartProcessor
from .ledger_processor import LedgerProcessor
from .pipeline import AllocationInputs, AllocationPipeline

__all__ = ['AvailabilityProcessor', 'ChartProcessor', 'LedgerProcessor', 'AllocationInputs', 'AllocationPipeline']
