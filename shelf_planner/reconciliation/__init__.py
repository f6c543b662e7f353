from .rules import ReconciliationRules, load_rules
from .engine import ReconciliationEngine, AdjustmentLog, summarize_warnings
from .editor import change_face_count, remove_placement, manual_edit_count
from .batch import BatchOrchestrator, pairs_for
from .service import PlanogramService

__all__ = [
    'ReconciliationRules', 'load_rules',
    'ReconciliationEngine', 'AdjustmentLog', 'summarize_warnings',
    'change_face_count', 'remove_placement', 'manual_edit_count',
    'BatchOrchestrator', 'pairs_for', 'PlanogramService',
]
